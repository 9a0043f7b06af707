from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from mediahub.api.router import api_router
from mediahub.config.settings import settings
from mediahub.core.api_response import response_error
from mediahub.core.exceptions import BaseBusinessException
from mediahub.core.logger import logger
from mediahub.core.response_codes import ResponseCodeEnum
from mediahub.infra.db.session import create_db_and_tables, engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 应用启动中，正在初始化资源...")

    # 初始化数据库
    await create_db_and_tables()
    logger.info("✅ 所有资源初始化完成")

    yield

    await engine.dispose()
    logger.info("🛑 应用已关闭，数据库连接池已释放")


app = FastAPI(title="MediaHub", lifespan=lifespan)


@app.exception_handler(BaseBusinessException)
async def business_exception_handler(request: Request, exc: BaseBusinessException):
    logger.warning(
        f"Business Exception | error: {exc.error}, code: {exc.code}, message: {exc.message}, path: {request.url.path}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "error": exc.error,
            "message": exc.message,
            "data": exc.extra or None,
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return response_error(
        code=ResponseCodeEnum.VALIDATION_ERROR,
        http_status=422,
        data={"errors": exc.errors()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled Exception | {repr(exc)} | path: {request.url.path}")
    # 非开发环境不向客户端暴露内部细节
    data = {"detail": repr(exc)} if settings.server.env == "dev" else None
    return JSONResponse(
        status_code=500,
        content={
            "code": ResponseCodeEnum.SERVER_ERROR.code,
            "error": ResponseCodeEnum.SERVER_ERROR.name,
            "message": ResponseCodeEnum.SERVER_ERROR.message,
            "data": data,
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.server.api_prefix)
