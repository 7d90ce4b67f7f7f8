"""
请求/响应日志中间件
记录HTTP请求的开始与完成，包括耗时；请求体按配置记录并脱敏
"""
import json
import time
from typing import Any
from urllib.parse import parse_qs

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """日志记录中间件"""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}
    SKIP_PREFIXES = ("/uploads/",)

    # 敏感字段，日志中需要脱敏
    SENSITIVE_FIELDS = {"password", "old_password", "new_password", "token", "access_token", "secret"}

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.enable_body_log_default: bool = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT
        self.max_body_log_bytes: int = settings.LOG_REQUEST_BODY_MAX_BYTES
        self.allow_multipart_body_log: bool = settings.LOG_REQUEST_BODY_ALLOW_MULTIPART

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self.SKIP_PATHS or path.startswith(self.SKIP_PREFIXES):
            return await call_next(request)

        start_time = time.perf_counter()
        request_info = await self._get_request_info(request)
        logger.info("request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=round(time.perf_counter() - start_time, 4),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        self._log_response(response, duration)
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response

    async def _get_request_info(self, request: Request) -> dict:
        info: dict[str, Any] = {}
        if request.query_params:
            info["query_params"] = dict(request.query_params)
        if request.method in ("POST", "PUT", "PATCH") and self._should_log_body(request):
            body = await self._extract_and_sanitize_body(request)
            if body is not None:
                info["body"] = body
        user_agent = request.headers.get("User-Agent")
        if user_agent:
            info["user_agent"] = user_agent
        return info

    def _should_log_body(self, request: Request) -> bool:
        # X-Log-Body: true/false 可以按请求覆盖默认值
        header = (request.headers.get("X-Log-Body") or "").lower()
        if header in {"true", "1", "yes"}:
            return True
        if header in {"false", "0", "no"}:
            return False
        return bool(self.enable_body_log_default and settings.DEBUG)

    async def _extract_and_sanitize_body(self, request: Request) -> Any:
        content_type = request.headers.get("content-type", "").lower()
        if "multipart/form-data" in content_type:
            # 不记录上传的文件内容，只按配置记录一个标记
            return {"multipart": True} if self.allow_multipart_body_log else None

        body = await request.body()
        if not body:
            return None
        text = body[: self.max_body_log_bytes].decode("utf-8", errors="ignore")

        if "application/json" in content_type:
            try:
                return self._sanitize_data(json.loads(text))
            except json.JSONDecodeError:
                # 截断或非法的 JSON 无法脱敏，不记录原文
                return {"unparsed_bytes": len(body)}
        if "application/x-www-form-urlencoded" in content_type:
            return self._sanitize_data({k: v if len(v) > 1 else v[0] for k, v in parse_qs(text).items()})
        return text

    def _sanitize_data(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: "***" if k.lower() in self.SENSITIVE_FIELDS else self._sanitize_data(v)
                for k, v in data.items()
            }
        if isinstance(data, list):
            return [self._sanitize_data(v) for v in data]
        return data

    def _log_response(self, response: Response, duration: float) -> None:
        log_data = {"status_code": response.status_code, "duration": round(duration, 4)}
        if response.status_code < 400:
            logger.info("request_completed", **log_data)
        elif response.status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
