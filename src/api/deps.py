"""FastAPI dependencies shared by the public and admin routers.

Long-lived collaborators (store, analyzer, notifier) are built once in the
lifespan and kept on ``app.state``; repositories and services are per request.
"""

# ruff: noqa: B008
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.analysis.analyzer import DocumentAnalyzer
from src.db.engine import get_session
from src.notifications.whatsapp import OrderNotifier
from src.orders.repository import OrderRepository, SqlOrderRepository
from src.orders.service import OrderService
from src.storage.artifacts import ArtifactStore


def get_artifact_store(request: Request) -> ArtifactStore:
    return request.app.state.store


def get_analyzer(request: Request) -> DocumentAnalyzer:
    return request.app.state.analyzer


def get_notifier(request: Request) -> OrderNotifier:
    return request.app.state.notifier


async def get_order_repository(db: AsyncSession = Depends(get_session)) -> OrderRepository:
    return SqlOrderRepository(db)


async def get_order_service(
    repository: OrderRepository = Depends(get_order_repository),
    store: ArtifactStore = Depends(get_artifact_store),
) -> OrderService:
    return OrderService(repository, store)
