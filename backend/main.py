"""
课程论文提交系统 - FastAPI 后端入口
"""
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from backend.routers import admin, auth, courses, papers

load_dotenv()

# ================= 应用配置 =================
app = FastAPI(
    title="Course Papers API",
    description="课程论文提交与审核 API",
    version="1.0.0"
)

# ================= CORS 配置 =================
_default_origins = "http://localhost:8501,http://127.0.0.1:8501,http://localhost:5173,http://127.0.0.1:5173"

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================= 注册路由 =================
app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(papers.router)
app.include_router(admin.router)


# ================= 根路由 =================
@app.get("/")
async def root():
    return {
        "message": "Course Papers API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    return {"status": "ok"}
