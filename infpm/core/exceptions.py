"""统一异常体系

所有致命错误继承 InfpmError，CLI 层据此输出友好提示。
单个链接失败不属于异常，见 models.LinkWarning。
"""

from __future__ import annotations


class InfpmError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(InfpmError):
    """配置缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(InfpmError):
    """用户输入校验失败（空包名/版本、非 http URL 等）"""

    code = "VALIDATION_ERROR"


class ResolutionError(InfpmError):
    """release API 不可达、返回非成功状态或响应格式错误，或无法选定资产"""

    code = "RESOLUTION_ERROR"


class AcquisitionError(InfpmError):
    """归档获取失败（网络或本地读取）"""

    code = "ACQUISITION_ERROR"


class PackageNotFoundError(AcquisitionError):
    """本地归档文件不存在"""

    code = "NOT_FOUND"


class PermissionDeniedError(AcquisitionError):
    """本地归档文件无读取权限"""

    code = "PERMISSION_DENIED"


class StoreError(InfpmError):
    """store / link 根目录或包目录创建失败"""

    code = "STORE_ERROR"


class ExtractionError(InfpmError):
    """归档解压失败"""

    code = "EXTRACTION_ERROR"
