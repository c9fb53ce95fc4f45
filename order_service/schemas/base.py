from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class ORMSchema(BaseModel):
    """支持从 ORM 对象直接生成 Schema"""
    model_config = ConfigDict(from_attributes=True)


class TimestampSchema(ORMSchema):
    """基础时间字段"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BaseResponse(BaseModel):
    """基础响应模型"""
    success: bool = Field(
        ...,
        description="请求是否成功"
    )
    message: Optional[str] = Field(
        None,
        description="响应消息"
    )
