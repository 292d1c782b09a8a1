"""Pydantic 스키마 정의 - 작업(SearchTask)과 상품 레코드(ProductRecord)"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SearchTask(BaseModel):
    """순위 확인 작업 (발급 후 불변)

    target_code가 기본 매칭 키이며 item_id / vendor_item_id는 옵션 상품
    리스팅을 위한 보조 매칭 키입니다.
    """
    model_config = ConfigDict(frozen=True)

    id: Any = Field(..., description="작업 ID (결과 전송 키)")
    keyword: str = Field(..., min_length=1, max_length=200, description="검색 키워드")
    target_code: str = Field(..., min_length=1, max_length=50, description="상품 코드 (기본 매칭 키)")
    item_id: Optional[str] = Field(None, max_length=50, description="itemId (보조 매칭 키)")
    vendor_item_id: Optional[str] = Field(None, max_length=50, description="vendorItemId (보조 매칭 키)")

    @field_validator("keyword", "target_code", mode="before")
    @classmethod
    def validate_required_text(cls, v: Any) -> str:
        """공백 제거, 숫자 코드도 문자열로 통일"""
        if v is None:
            raise ValueError("값이 비어 있습니다")
        v = str(v).strip()
        if not v:
            raise ValueError("공백만으로 구성될 수 없습니다")
        return v

    @field_validator("item_id", "vendor_item_id", mode="before")
    @classmethod
    def validate_optional_code(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @model_validator(mode="before")
    @classmethod
    def _coerce_api_payload(cls, data: Any):
        """작업 API 포맷 허용: product_code 없으면 product_id 사용"""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "target_code" not in data:
            data["target_code"] = data.get("product_code") or data.get("product_id")
        return data

    @property
    def secondary_codes(self) -> tuple[str, ...]:
        return tuple(c for c in (self.item_id, self.vendor_item_id) if c)


class ProductRecord(BaseModel):
    """검색 결과에서 찾은 상품 정보

    rank 외의 모든 필드는 독립적으로 nullable입니다. 추출 실패 시 해당 필드만
    None이 되며 레코드 전체가 실패하지 않습니다.

    - rank == 0 (미발견): 나머지 필드는 모두 None/빈 값
    - sold_out == True: 가격 그룹(list_price, sale_price, discount_percent,
      unit_label, unit_price)은 항상 None
    """

    rank: int = Field(0, ge=0, description="전체 순위 (1부터, 0 = 미발견)")

    name: Optional[str] = Field(None, description="상품명 (썸네일 alt 없으면 None)")
    thumbnail_ref: Optional[str] = Field(None, description="썸네일 이미지 src (이미지 없으면 None)")
    rating: Optional[float] = Field(None, ge=0, description="평점 (평점 영역 없으면 None)")
    review_count: Optional[int] = Field(None, ge=0, description="리뷰 수 (평점 영역 없으면 None)")

    # 가격 그룹 - 품절 시 None
    list_price: Optional[int] = Field(None, ge=0, description="할인 전 가격 (할인 없거나 품절이면 None)")
    sale_price: Optional[int] = Field(None, ge=0, description="판매가 (품절이면 None)")
    discount_percent: Optional[int] = Field(None, ge=0, description="할인율 % (할인 없거나 품절이면 None)")
    unit_label: Optional[str] = Field(None, description="단가 기준 (예: '1세트당', 단가 표기 없거나 품절이면 None)")
    unit_price: Optional[int] = Field(None, ge=0, description="단가 (원, 단가 표기 없거나 품절이면 None)")

    free_ship: Optional[bool] = Field(None, description="무료배송 (미발견이면 None)")
    free_return: Optional[bool] = Field(None, description="무료반품 (미발견이면 None)")
    featured: Optional[bool] = Field(None, description="쿠팡추천 배지 (미발견이면 None)")

    discount_tags: list[str] = Field(default_factory=list, description="할인 타입 (예: 와우할인, 쿠폰할인), 중복 없음")
    point_benefit: Optional[str] = Field(None, description="적립 혜택 문구 (없으면 None)")
    delivery_badge_keys: list[str] = Field(default_factory=list, description="배송 배지 아이콘 키 (표시 순서)")
    delivery_text: Optional[str] = Field(None, description="배송 정보 문구 (없으면 None)")

    sold_out: Optional[bool] = Field(None, description="품절 여부 (미발견이면 None)")
    sold_out_text: Optional[str] = Field(None, description="품절 문구 (품절이 아니면 None)")
    detail_url: Optional[str] = Field(None, description="상품 상세 URL (링크 없으면 None)")

    @model_validator(mode="after")
    def _suppress_price_when_sold_out(self) -> "ProductRecord":
        if self.sold_out:
            for name in ("list_price", "sale_price", "discount_percent", "unit_label", "unit_price"):
                setattr(self, name, None)
        return self

    @classmethod
    def not_found(cls) -> "ProductRecord":
        """미발견 (rank=0) 레코드"""
        return cls(rank=0)

    @property
    def is_found(self) -> bool:
        return self.rank > 0

    def to_product_data(self) -> dict[str, Any]:
        """결과 API 전송용 product_data (값이 있는 필드만, rank=0이면 빈 dict)"""
        if not self.is_found:
            return {}

        data: dict[str, Any] = {}

        def put(key: str, value: Any) -> None:
            if value is not None and value != "" and value != []:
                data[key] = value

        put("product_name", self.name)
        put("thumbnail_url", self.thumbnail_ref)
        put("rating", self.rating)
        put("review_count", self.review_count)

        put("before_price", self.list_price)
        put("sale_price", self.sale_price)
        put("discount_percent", self.discount_percent)
        put("unit_label", self.unit_label)
        put("unit_price", self.unit_price)

        put("free_ship", self.free_ship)
        put("free_return", self.free_return)
        put("delivery_info", self.delivery_text)

        put("coupang_pick", self.featured)
        put("discount_types", list(self.discount_tags))
        put("point_benefit", self.point_benefit)
        if self.delivery_badge_keys:
            data["delivery_keys"] = ",".join(self.delivery_badge_keys)

        if self.sold_out:
            data["is_soldout"] = True
            data["soldout_text"] = self.sold_out_text

        put("product_url", self.detail_url)
        return data


class ResultPayload(BaseModel):
    """결과 API 요청 본문"""
    id: Any = Field(..., description="작업 ID")
    rank: int = Field(..., ge=0, description="전체 순위 (0 = 미발견)")
    product_data: dict[str, Any] = Field(default_factory=dict, description="JSONB로 저장될 상품 정보")

    @classmethod
    def from_record(cls, task: SearchTask, record: ProductRecord) -> "ResultPayload":
        return cls(id=task.id, rank=record.rank, product_data=record.to_product_data())
