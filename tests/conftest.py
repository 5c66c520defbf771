"""Pytest fixtures for testing"""

import pytest
from datetime import datetime


@pytest.fixture
def now() -> datetime:
    """Fixed clock: mid-June 2024"""
    return datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def customer() -> dict:
    """Customer currently owing 700 after the sample history below"""
    return {"id": 7, "name": "Acme Trading", "balance": 700, "firstActivityDate": "2024-01-03"}


@pytest.fixture
def sample_sales() -> list[dict]:
    """Sample sales: one cash sale, one deferred sale, one partially paid sale"""
    return [
        {
            "id": 1,
            "total": 300,
            "paidAmount": 300,
            "remainingAmount": 0,
            "saleType": "cash",
            "invoiceDate": "2024-04-02",
            "createdAt": "2024-04-02T09:15:00",
            "paymentMethod": {"name": "Cash"},
        },
        {
            "id": 2,
            "total": 1000,
            "saleType": "deferred",
            "invoiceDate": "2024-04-10T16:45:00",
            "createdAt": "2024-04-10T16:45:00",
            "notes": "net 30",
        },
        {
            "id": 3,
            "total": 500,
            "paidAmount": 200,
            "remainingAmount": 300,
            "invoiceDate": "2024-05-05",
            "createdAt": "2024-05-05T11:00:00",
        },
    ]


@pytest.fixture
def sample_returns() -> list[dict]:
    """Sample returns: part of the deferred sale comes back"""
    return [
        {"id": 1, "total": 100, "createdAt": "2024-04-20T10:00:00", "notes": "damaged"},
    ]


@pytest.fixture
def sample_payments() -> list[dict]:
    """Sample standalone payments against the deferred sale"""
    return [
        {
            "id": 1,
            "amount": 400,
            "paymentDate": "2024-05-20",
            "createdAt": "2024-05-20T14:30:00",
            "paymentMethod": {"name": "Bank transfer"},
        },
        {"id": 2, "amount": 100, "createdAt": "2024-06-03T08:00:00"},
    ]
