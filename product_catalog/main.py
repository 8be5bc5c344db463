from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy import text

from product_catalog.core.config import settings
from product_catalog.core.exceptions import STATUS_CODES, error_body
from product_catalog.core.redis import async_redis, redlock
from product_catalog.db import engine, init_db
from product_catalog.routers import product_router
from product_catalog.schemas.product import HealthCheckResponse

import uvicorn

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 应用启动时的初始化
    logger.info("Starting application...")

    # 数据库连接检查并建表
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        init_db()
        logger.info("Database connection successful")
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        raise

    # Redis 连接检查（仅在启用 SKU 分布式锁时）
    if redlock is not None:
        try:
            await async_redis.ping()
            logger.info("Redis connected successfully")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}")
            logger.warning("SKU writes will be rejected until the lock backend is reachable")

    yield

    # 应用关闭时的清理
    logger.info("Shutting down application...")
    await async_redis.aclose()

# 创建 FastAPI 应用
app = FastAPI(
    title="Product Catalog API",
    description="商品目录服务：商品增删改查、分页排序与搜索",
    version="1.0.0",
    lifespan=lifespan
)

# 添加 CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(product_router.router, prefix=settings.API_PREFIX)
app.include_router(product_router.search_router, prefix=settings.API_PREFIX)
app.include_router(product_router.search_router)


def validation_details(exc: RequestValidationError) -> dict:
    """按字段聚合校验错误信息"""
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"][1:]) or "general"
        details.setdefault(field, []).append(error["msg"])
    return details

# 全局异常处理
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content=error_body(
            "Validation failed",
            "VALIDATION_ERROR",
            request.url.path,
            validation_details(exc),
        ),
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP error: {exc.status_code} - {exc.detail}")
    code = getattr(exc, "code", None) or STATUS_CODES.get(exc.status_code, "ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            str(exc.detail),
            code,
            request.url.path,
            getattr(exc, "details", None),
        ),
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", "INTERNAL_ERROR", request.url.path),
    )

# 健康检查端点
@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """健康检查接口"""
    return HealthCheckResponse()

@app.get("/")
async def read_root():
    """API 根路径"""
    return {
        "message": "Product Catalog API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "product_catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
