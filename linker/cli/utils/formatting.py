"""CLI 输出格式化工具

提供颜色、表格和错误模板的格式化功能。"""

from typing import Any, List, Optional


# 错误消息模板
ERROR_TEMPLATES = {
    'not_linked': "当前目录没有链接记录！可以先运行 `linker link`",
    'resource_not_found': "资源不存在: {name}\n解决方案: 运行 'linker resources' 查看已注册的资源。",
    'missing_target': "请指定资源名称或使用 --all",
    'symlink_failed': "创建符号链接失败: {error}\n已创建的链接已回滚。",
}


class Color:
    """ANSI 颜色代码"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'


class FormatterConfig:
    """格式化配置中心"""

    def __init__(self, no_color: bool = False):
        """初始化配置
        Args:
            no_color: 是否禁用颜色输出
        """
        self.no_color = no_color

    def colorize(self, text: str, color: str) -> str:
        """根据配置为文本添加 ANSI 颜色"""
        if self.no_color:
            return text
        return f"{color}{text}{Color.RESET}"


class OutputFormatter:
    """CLI 输出格式化器"""

    def __init__(self, config: Optional[FormatterConfig] = None):
        self.config = config or FormatterConfig()

    def success(self, message: str) -> str:
        prefix = self.config.colorize("+", Color.GREEN)
        return f"{prefix} {message}"

    def error(self, message: str) -> str:
        prefix = self.config.colorize("-", Color.RED)
        return f"{prefix} {message}"

    def warning(self, message: str) -> str:
        prefix = self.config.colorize("!", Color.YELLOW)
        return f"{prefix} {message}"

    def info(self, message: str) -> str:
        prefix = self.config.colorize("*", Color.BLUE)
        return f"{prefix} {message}"

    def format_error(self, error_type: str, **kwargs) -> str:
        """根据模板格式化特定类型的错误
        Args:
            error_type: ERROR_TEMPLATES 中的 key
            **kwargs: 填充模板用的参数
        """
        template = ERROR_TEMPLATES.get(error_type, f"错误: {error_type}")
        try:
            message = template.format(**kwargs)
        except (KeyError, ValueError):
            message = template
        return self.error(message)

    def format_link(self, name: str, path: str, status: Optional[str] = None) -> str:
        """格式化一条链接: name --> path [status]"""
        line = f"{name} --> {path}"
        if status is None:
            return line
        color = Color.GREEN if status == "valid" else Color.RED
        return f"{line} {self.config.colorize(f'[{status}]', color)}"

    def format_table(self, headers: List[str], rows: List[List[Any]]) -> str:
        """格式化对齐的表格字符串"""
        if not headers:
            return ""

        column_widths = []
        for i, header in enumerate(headers):
            max_width = len(str(header))
            for row in rows:
                if i < len(row):
                    max_width = max(max_width, len(str(row[i])))
            column_widths.append(max_width)

        lines = []
        header_row = "  ".join(str(h).ljust(w) for h, w in zip(headers, column_widths))
        lines.append(self.config.colorize(header_row.rstrip(), Color.BOLD))
        lines.append("  ".join("-" * w for w in column_widths))

        for row in rows:
            data_row = "  ".join(str(cell).ljust(w) for cell, w in zip(row, column_widths))
            lines.append(data_row.rstrip())

        return "\n".join(lines)
