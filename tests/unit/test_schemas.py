"""Pydantic 스키마 테스트."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.schemas.rank_schema import ProductRecord, ResultPayload, SearchTask


class TestSearchTask:
    def test_product_code_preferred_over_product_id(self):
        task = SearchTask.model_validate(
            {"id": 1, "keyword": " 에어팟 ", "product_code": "123", "product_id": "456"}
        )
        assert task.target_code == "123"
        assert task.keyword == "에어팟"

    def test_product_id_fallback_and_numeric_codes(self):
        task = SearchTask.model_validate(
            {"id": 2, "keyword": "케이블", "product_id": 8491054718, "item_id": 24575039429, "vendor_item_id": ""}
        )
        assert task.target_code == "8491054718"
        assert task.item_id == "24575039429"
        assert task.vendor_item_id is None
        assert task.secondary_codes == ("24575039429",)

    def test_blank_keyword_rejected(self):
        with pytest.raises(ValidationError):
            SearchTask(id=1, keyword="   ", target_code="1")

    def test_missing_target_rejected(self):
        with pytest.raises(ValidationError):
            SearchTask.model_validate({"id": 1, "keyword": "키보드"})

    def test_frozen(self):
        task = SearchTask(id=1, keyword="키보드", target_code="1")
        with pytest.raises(ValidationError):
            task.keyword = "마우스"


class TestProductRecord:
    def test_not_found(self):
        record = ProductRecord.not_found()
        assert record.rank == 0
        assert not record.is_found
        assert record.name is None
        assert record.discount_tags == []
        assert record.to_product_data() == {}

    def test_negative_rank_rejected(self):
        with pytest.raises(ValidationError):
            ProductRecord(rank=-1)

    def test_sold_out_clears_price_group(self):
        record = ProductRecord(
            rank=3,
            name="품절 상품",
            rating=4.2,
            list_price=20000,
            sale_price=15000,
            discount_percent=25,
            unit_label="10개당",
            unit_price=1500,
            sold_out=True,
            sold_out_text="일시품절",
            delivery_badge_keys=["rocket-fresh"],
        )
        assert record.list_price is None
        assert record.sale_price is None
        assert record.discount_percent is None
        assert record.unit_label is None
        assert record.unit_price is None
        assert record.name == "품절 상품"
        assert record.rating == 4.2
        assert record.delivery_badge_keys == ["rocket-fresh"]

    def test_to_product_data_wire_keys(self):
        record = ProductRecord(
            rank=5,
            name="무선 이어폰",
            thumbnail_ref="https://thumbnail.coupangcdn.com/a.jpg",
            rating=4.5,
            review_count=1234,
            list_price=39000,
            sale_price=29900,
            discount_percent=23,
            unit_label="1개당",
            unit_price=29900,
            free_ship=True,
            free_return=False,
            featured=True,
            discount_tags=["와우할인"],
            point_benefit="최대 1,495원 적립",
            delivery_badge_keys=["rocketwow-bi-16", "free-return"],
            delivery_text="내일 도착",
            sold_out=False,
            detail_url="https://www.coupang.com/vp/products/1",
        )
        data = record.to_product_data()

        assert data == {
            "product_name": "무선 이어폰",
            "thumbnail_url": "https://thumbnail.coupangcdn.com/a.jpg",
            "rating": 4.5,
            "review_count": 1234,
            "before_price": 39000,
            "sale_price": 29900,
            "discount_percent": 23,
            "unit_label": "1개당",
            "unit_price": 29900,
            "free_ship": True,
            "free_return": False,
            "delivery_info": "내일 도착",
            "coupang_pick": True,
            "discount_types": ["와우할인"],
            "point_benefit": "최대 1,495원 적립",
            "delivery_keys": "rocketwow-bi-16,free-return",
            "product_url": "https://www.coupang.com/vp/products/1",
        }

    def test_to_product_data_omits_nulls_and_marks_sold_out(self):
        record = ProductRecord(rank=1, name="상품", sold_out=True, sold_out_text="품절")
        data = record.to_product_data()
        assert data == {"product_name": "상품", "is_soldout": True, "soldout_text": "품절"}


def test_result_payload_from_record():
    task = SearchTask(id=42, keyword="키보드", target_code="1")
    payload = ResultPayload.from_record(task, ProductRecord(rank=7, name="키보드"))
    assert payload.model_dump() == {"id": 42, "rank": 7, "product_data": {"product_name": "키보드"}}

    empty = ResultPayload.from_record(task, ProductRecord.not_found())
    assert empty.model_dump() == {"id": 42, "rank": 0, "product_data": {}}
