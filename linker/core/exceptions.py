"""Linker 异常体系"""


class LinkerException(Exception):
    """基础异常类"""
    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details
        super().__init__(self.message)


# 配置相关异常
class ConfigException(LinkerException):
    """配置异常"""
    pass


class ConfigParseError(ConfigException):
    """配置解析失败"""
    pass


class ConfigIOError(ConfigException):
    """配置文件读写失败"""
    pass


class ConfigValidationError(ConfigException):
    """配置验证失败"""
    pass


# 资源注册表异常
class RegistryException(LinkerException):
    """注册表异常"""
    pass


class RegistryIOError(RegistryException):
    """注册表读写失败"""
    pass


class RegistryParseError(RegistryException):
    """注册表内容无法解析"""
    pass


class InvalidResourceError(RegistryException):
    """无效的资源定义"""
    pass


class ResourceNotFoundError(RegistryException):
    """资源不存在"""
    pass


class MissingHomeDirectory(RegistryException):
    """无法确定用户主目录"""
    pass


# 清单相关异常
class ManifestException(LinkerException):
    """清单异常"""
    pass


class ManifestIOError(ManifestException):
    """清单文件读写失败"""
    pass


class ManifestParseError(ManifestException):
    """清单文件解析失败"""
    pass


class MalformedManifestEntry(ManifestException):
    """清单条目格式错误"""
    pass


# 符号链接异常
class SymlinkException(LinkerException):
    """符号链接异常"""
    pass


class SymlinkCreationError(SymlinkException):
    """符号链接创建失败"""
    pass


class SymlinkPermissionError(SymlinkCreationError):
    """权限不足，无法创建符号链接"""
    pass


class BrokenSymlinkError(SymlinkException):
    """符号链接损坏"""
    pass
