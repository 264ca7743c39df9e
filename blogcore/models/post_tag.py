from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column
from blogcore.db.database import Base

class PostTag(Base):
    """文章标签关联模型"""
    __tablename__ = "blog_post_tags"

    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(Integer, ForeignKey("blog_tags.id"), primary_key=True)
