"""
FastAPI应用入口
"""
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from pathlib import Path
import os
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

logger = logging.getLogger(__name__)

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api import users, profile, books, library, reader, admin
from app.reader import SessionClosedError, SessionRegistry, get_session_registry, reset_session_registry


def _get_cors_config() -> tuple[list[str], str | None]:
    """
    获取 CORS 配置

    Returns:
        (allow_origins, allow_origin_regex)
        - 生产环境：使用精确匹配的 origins 列表
        - 开发环境：使用正则匹配本地端口，方便本地开发
    """
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    if origins_str:
        origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]
        if origins:
            return origins, None

    # 开发环境：使用正则匹配所有本地端口
    if os.getenv("DEV_MODE", "false").lower() == "true":
        return [], r"http://(localhost|127\.0\.0\.1)(:\d+)?"

    # 非开发环境且未配置 ALLOWED_ORIGINS：拒绝所有跨域
    logger.warning("未配置 ALLOWED_ORIGINS 且非开发模式，CORS 将拒绝所有跨域请求")
    return [], None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # 退出前把所有在线阅读会话的进度写回数据库
    reset_session_registry()


app = FastAPI(
    title="WordVale API",
    description="Ebook reading and publishing platform",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS配置 - 从环境变量读取允许的源
allow_origins, allow_origin_regex = _get_cors_config()
logger.info(f"CORS 配置: origins={allow_origins}, regex={allow_origin_regex}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SessionClosedError)
async def session_closed_handler(request: Request, exc: SessionClosedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# 包含所有路由
app.include_router(users.router, prefix="/api", tags=["用户管理"])
app.include_router(profile.router, prefix="/api", tags=["个人资料"])
app.include_router(books.router, prefix="/api", tags=["图书目录"])
app.include_router(library.router, prefix="/api", tags=["个人书架"])
app.include_router(reader.router, prefix="/api", tags=["阅读器"])
app.include_router(admin.router, prefix="/api", tags=["Admin"])


@app.get("/")
async def root():
    """根路径"""
    return {"message": "WordVale API", "docs": "/docs"}


@app.get("/health")
async def health(registry: SessionRegistry = Depends(get_session_registry)):
    """健康检查"""
    return {
        "status": "healthy",
        "live_reading_sessions": len(registry),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
