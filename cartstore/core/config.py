"""
应用配置管理模块

使用Pydantic Settings管理配置，支持从环境变量、.env文件和默认值读取配置。
不创建全局实例：调用方构造一次 Settings 并显式传入存储工厂与日志系统。
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    配置类

    所有配置项都有类型提示和默认值，Pydantic会自动进行类型验证和转换。
    环境变量使用 CARTSTORE_ 前缀，例如 CARTSTORE_STORE_BACKEND=redis。
    """

    # ===========================================
    # 基础配置
    # ===========================================

    # 运行环境
    environment: str = "development"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """验证环境配置值"""
        allowed = ["development", "testing", "production"]
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    # ===========================================
    # 存储配置
    # ===========================================

    # 存储后端: memory 或 redis
    store_backend: str = "memory"

    # Redis配置
    redis_url: str = "redis://localhost:6379/0"
    redis_password: Optional[str] = None
    redis_key_prefix: str = "cartstore"

    # 等待工作单元锁的最长时间（秒）
    lock_timeout: float = 30.0

    # 删除容器时对其元素的处理策略: detach 或 cascade
    container_delete_policy: str = "detach"

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v):
        """验证存储后端"""
        allowed = ["memory", "redis"]
        if v.lower() not in allowed:
            raise ValueError(f"store_backend must be one of {allowed}")
        return v.lower()

    @field_validator("container_delete_policy")
    @classmethod
    def validate_delete_policy(cls, v):
        """验证删除策略"""
        allowed = ["detach", "cascade"]
        if v.lower() not in allowed:
            raise ValueError(f"container_delete_policy must be one of {allowed}")
        return v.lower()

    @field_validator("lock_timeout")
    @classmethod
    def validate_lock_timeout(cls, v):
        if v <= 0:
            raise ValueError("lock_timeout must be positive")
        return v

    # ===========================================
    # 日志配置
    # ===========================================

    # 日志级别
    log_level: str = "INFO"

    # 是否写入日志文件
    log_to_file: bool = False

    # 日志文件路径
    log_file: str = "./logs/cartstore.log"

    # 日志文件最大大小（MB）
    log_file_max_size: int = 10

    # 日志文件备份数量
    log_file_backup_count: int = 5

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """验证日志级别"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    model_config = SettingsConfigDict(
        env_prefix="CARTSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # 环境变量不区分大小写
        extra="ignore"  # 忽略额外的环境变量
    )

    @property
    def is_development(self) -> bool:
        """判断是否为开发环境"""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """判断是否为生产环境"""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """判断是否为测试环境"""
        return self.environment == "testing"


__all__ = ["Settings"]
