from .base import Base
from .session import engine


def init_db(bind=None):
    """建表（导入全部模型后再 create_all）"""
    import order_service.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# Export for convenience
__all__ = ["Base", "engine", "init_db"]
