"""测试配置和 fixtures"""
import os

# 必须在导入应用之前设置
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SKU_LOCK_ENABLED", "false")

from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from redlock import Redlock
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from product_catalog.db.base import Base
from product_catalog.db.session import build_engine
from product_catalog import models  # noqa: F401
from product_catalog.schemas.product import ProductCreateRequest
from product_catalog.services.product_service import ProductService


@pytest.fixture
def db_engine():
    """内存 SQLite 引擎（所有线程共享同一连接）"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """创建测试数据库会话"""
    SessionLocal = sessionmaker(
        bind=db_engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mock_redlock():
    """创建模拟 Redlock 分布式锁"""
    redlock_mock = Mock(spec=Redlock)
    lock_mock = Mock()
    redlock_mock.lock.return_value = lock_mock
    redlock_mock.unlock.return_value = True
    return redlock_mock


@pytest.fixture
def service(db_session):
    """不带分布式锁的商品服务"""
    return ProductService(db_session)


@pytest.fixture
def sample_product_data():
    """示例商品数据（snake_case，直接构造请求模型）"""
    return {
        "name": "Laptop",
        "description": "High-performance laptop for developers",
        "price": Decimal("999.99"),
        "category": "Electronics",
        "stock_quantity": 50,
        "sku": "LAPTOP-001",
        "images": [
            {"url": "https://example.com/laptop-front.jpg", "alt": "Front", "primary": True},
            {"url": "https://example.com/laptop-side.jpg", "alt": "Side", "primary": False},
        ],
        "attributes": {"color": "silver"},
    }


@pytest.fixture
def sample_payload():
    """示例商品请求体（camelCase，用于 HTTP 接口）"""
    return {
        "name": "Wireless Mouse",
        "description": "Ergonomic wireless mouse",
        "price": 29.99,
        "category": "Electronics",
        "stockQuantity": 200,
        "sku": "MOUSE-001",
        "images": [{"url": "https://example.com/mouse.jpg", "alt": "Mouse", "primary": True}],
        "attributes": {"color": "red"},
    }


@pytest.fixture
def make_product(service):
    """按需创建商品的工厂"""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']:03d}",
            "price": Decimal("10.00"),
            "category": "General",
            "sku": f"SKU-{counter['n']:03d}",
        }
        data.update(overrides)
        return service.create_product(ProductCreateRequest(**data), "tester")

    return _make


@pytest.fixture
def client(db_session):
    """创建测试客户端（数据库替换为内存 SQLite，关闭分布式锁）"""
    from product_catalog.main import app
    from product_catalog.core.dependencies import get_db, get_redlock

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_redlock] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
