from sqlalchemy import create_engine, Column, Integer, String, Text, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
import os
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()

Base = declarative_base()

# ================= 1. User 模型 =================
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(100), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    papers = relationship("Paper", back_populates="owner", foreign_keys="Paper.owner_id")

# ================= 2. Course 模型 =================
class Course(Base):
    """课程（全局共享，不区分归属）"""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    papers = relationship("Paper", back_populates="course")

# ================= 3. Paper 模型 =================
class Paper(Base):
    """学生提交的课程材料"""
    __tablename__ = "papers"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    paper_type = Column(String(20), nullable=False)  # assignment, quiz, midterm, endterm, project
    year = Column(Integer, nullable=False)
    semester = Column(String(50), nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    rejection_reason = Column(Text, nullable=True)

    # 文件相关字段
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    md5_hash = Column(String(32), nullable=False)
    uploaded_at = Column(DateTime, default=datetime.now)

    # 审核记录
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    course = relationship("Course", back_populates="papers")
    owner = relationship("User", back_populates="papers", foreign_keys=[owner_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

# ================= 4. 初始化 =================
DB_URL = os.getenv("DB_URL", "sqlite:///papers.db")

engine = create_engine(DB_URL)
Base.metadata.create_all(engine)
Session = sessionmaker(bind=engine)
