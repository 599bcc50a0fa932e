"""
应用入口：
- 加载 .env（先 .env.example 作默认，再用 .env 覆盖）
- lifespan 启动阶段：配置日志 → 打印 logger_config → 初始化数据库
- 装载中间件（请求日志 → CORS → 认证网关，由外到内）、异常处理器、路由
- 提供 /health（不经网关）
"""
from pathlib import Path
from dotenv import load_dotenv

# 1) 先加载 .env，务必在导入 logger / db 之前
ROOT = Path(__file__).resolve().parents[1]
ENV = ROOT / ".env"
ENV_EXAMPLE = ROOT / ".env.example"
if ENV_EXAMPLE.exists():
    load_dotenv(ENV_EXAMPLE, override=False)
if ENV.exists():
    load_dotenv(ENV, override=True)

# 2) 正常导入
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sellhub.core.errors import SellhubError
from sellhub.middleware.auth import AuthGateMiddleware
from sellhub.middleware.logging import RequestLoggingMiddleware
from sellhub.infra.logger import (
    configure_logging, emit,
    LOG_TO_FILE, LOG_DIR, LOG_FILE, LOG_ROTATE_WHEN, LOG_BACKUP_COUNT,
)
from sellhub.infra.db import init_db
from sellhub.api import auth as auth_api
from sellhub.api import users as users_api
from sellhub.api import customers as customers_api
from sellhub.api import products as products_api
from sellhub.api import sells as sells_api
from sellhub.api import relations as relations_api

# 3) lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    emit(
        "logger_config",
        to_file=LOG_TO_FILE, dir=LOG_DIR, file=LOG_FILE,
        when=LOG_ROTATE_WHEN, backup=LOG_BACKUP_COUNT,
    )
    init_db()
    emit("db_init_done")
    yield
    emit("app_shutdown")

# 4) 创建应用并装配；add_middleware 后加的在外层
app = FastAPI(title="sellhub", lifespan=lifespan)
app.add_middleware(AuthGateMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Authorization"],
    allow_credentials=False,
)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(SellhubError)
async def handle_business_error(request: Request, exc: SellhubError):
    emit(
        "business_error",
        level="WARNING",
        path=str(request.url.path),
        code=exc.code,
        status_code=exc.status_code,
        detail=exc.message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        {"detail": exc.message, "code": exc.code},
        status_code=exc.status_code,
        headers=headers,
    )


@app.get("/health")
def health():
    return {"ok": True}

# 路由
app.include_router(auth_api.router,              prefix="/api")
app.include_router(users_api.router,             prefix="/api")
app.include_router(customers_api.router,         prefix="/api")
app.include_router(products_api.router,          prefix="/api")
app.include_router(sells_api.router,             prefix="/api")
app.include_router(relations_api.customer_router, prefix="/api")
app.include_router(relations_api.product_router,  prefix="/api")
