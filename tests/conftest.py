# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sheet_orders.logging.init import reset_logging
from sheet_orders.services.collaborators import SpreadsheetBackend
from tests.helpers import make_columns, make_result, write_xlsx


@pytest.fixture(autouse=True)
def _isolated_logging():
    yield
    # 测试间不共享 handler (capsys 的 stdout 会被替换)
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SHEET_ORDERS_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """output:
  default_name: result.xlsx
  sheet_name: 订单
open_filters:
  - name: Excel 文件
    extensions: [xlsx]
mapping_preset:
  recipient_name: {columns: [A]}
  recipient_phone: {columns: [B]}
  delivery_address: {columns: [C, D], operation: concat}
  quantity: {columns: [E]}
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheet_orders.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_xlsx(temp_workdir: Path) -> Callable[..., Path]:
    def _make(name: str, rows: list[list[object]], sheet: str = "Sheet1") -> Path:
        return write_xlsx(temp_workdir / "data" / name, rows, sheet)

    return _make


@pytest.fixture()
def orders_rows() -> list[list[object]]:
    # 表头 + 5 行: 张三重复两次, 一行全空, 王五数量非数字
    return [
        ["姓名", "手机", "省市", "详细地址", "数量", "单价"],
        ["张三", 13800000001, "浙江杭州", "西湖路1号", 2, 10],
        ["李四", 13800000002, "江苏南京", "中山路2号", 1, 20],
        ["张三", 13800000001, "浙江杭州", "西湖路1号", 3, 10],
        [None, None, None, None, None, None],
        ["王五", 13800000003, "广东广州", "天河路3号", "两", 5],
    ]


@pytest.fixture()
def fake_backend() -> Any:
    """SpreadsheetBackend double with AsyncMock operations."""
    backend = MagicMock(spec=SpreadsheetBackend)
    backend.read_columns = AsyncMock(return_value=make_columns("收件人", "电话", "地址"))
    backend.convert_with_mapping = AsyncMock(return_value=make_result(2))
    backend.merge_duplicates = AsyncMock(return_value=make_result(1))
    backend.export_file = AsyncMock(return_value="成功导出 2 条数据")
    return backend
