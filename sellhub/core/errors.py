# sellhub/core/errors.py
"""
业务异常体系。服务层只抛这些异常，由 main.py 的异常处理器统一转成
{"detail": <原因>, "code": <CODE>} 的 JSON 响应；不会让进程崩溃。

- AuthenticationFailure / InvalidToken → 401（对客户端不区分具体原因）
- PermissionDenied                    → 403（角色或归属校验失败）
- LifecycleViolation / OrderLocked    → 409（报单状态不允许该操作）
- NotFound                            → 404
- Conflict                            → 409（重复分配、重复登记）
- ValidationFailure                   → 400（业务校验，如库存为负）
"""


class SellhubError(Exception):
    """Base exception for all business errors."""

    status_code = 400

    def __init__(self, message: str = "", code: str = "SELLHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthenticationFailure(SellhubError):
    status_code = 401

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message, code="UNAUTHENTICATED")


class InvalidToken(AuthenticationFailure):
    """Token failed verification. ``cause`` is for logs only."""

    def __init__(self, cause: str = "invalid"):
        self.cause = cause
        super().__init__("invalid token")


class PermissionDenied(SellhubError):
    status_code = 403

    def __init__(self, message: str = "no permission"):
        super().__init__(message, code="FORBIDDEN")


class LifecycleViolation(SellhubError):
    status_code = 409

    def __init__(self, message: str = "operation not allowed in current state"):
        super().__init__(message, code="LIFECYCLE_VIOLATION")


class OrderLocked(LifecycleViolation):
    def __init__(self, message: str = "approved sell order cannot be modified"):
        super().__init__(message)


class NotFound(SellhubError):
    status_code = 404

    def __init__(self, message: str = "not found"):
        super().__init__(message, code="NOT_FOUND")


class Conflict(SellhubError):
    status_code = 409

    def __init__(self, message: str = "already exists"):
        super().__init__(message, code="CONFLICT")


class ValidationFailure(SellhubError):
    status_code = 400

    def __init__(self, message: str = "invalid input"):
        super().__init__(message, code="INVALID")
