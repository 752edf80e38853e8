import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.im import groups
from apps.p2p import matching


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api():
    return APIClient()


@pytest.fixture
def paired(db):
    """alice 先排队，bob 加入后配对成功"""
    matching.join("alice")
    result = matching.join("bob")
    assert result["matched"]
    return result["connectionId"]


@pytest.fixture
def chess(db):
    """alice 创建的 chess 群，bob 已加入"""
    g = groups.create_group("alice", "chess", "opening theory")
    groups.join_group("bob", g["id"])
    return g["id"]
