"""쿠팡 검색 결과 - HTML 파싱 유틸.

이 모듈은 렌더링 엔진과 분리된 순수 파싱 로직을 담습니다. 입력은 렌더링된
페이지의 outerHTML(또는 selectolax Node)이며 네트워크/브라우저에 의존하지 않습니다.

필드 추출 규칙:
- 각 필드는 독립적으로 추출되며 실패 시 해당 필드만 None
- 품절(soldoutText) 상품은 가격 그룹을 추출하지 않음
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from selectolax.parser import HTMLParser, Node

from src.utils.resource_loader import load_discount_keywords, load_page_signatures
from src.utils.text_utils import (
    collapse_whitespace,
    contains_any,
    detect_keywords,
    extract_count,
    extract_decimal,
    parse_unit_price,
    to_number,
)
from src.utils.url_utils import ProductIds, extract_product_ids, normalize_href


PRODUCT_LIST_SELECTOR = "#product-list > li[data-id]"
NO_RESULT_SELECTOR = "[class^=no-result_magnifier]"
AD_MARK_SELECTOR = "[class*=AdMark]"
AD_TRACKING_PARAM = "sourceType=srp_product_ads"

_SOLDOUT_SELECTOR = '[class*="soldoutText"]'
_RATING_CONTAINER = '[class*="ProductRating_productRating__"]'
_RATING_VALUE = '[class*="ProductRating_rating__"]'
_RATING_COUNT = '[class*="ProductRating_ratingCount__"]'
_LIST_PRICE_SELECTORS = ('del[class*="basePrice"]', "del", '[class*="basePrice"]')
_DISCOUNT_SELECTORS = ('[class*="discountRate"]', '[class*="discount-percent"]', '[class*="discount"]')
_SALE_PRICE_SELECTORS = ('strong[class*="priceValue"]', '[class*="price"] strong', "strong")
_PRICE_SCOPE_SELECTORS = ('[class*="Price"]', '[class*="price"]')
_UNIT_TEXT_SELECTOR = "span, div, p, strong, em"
_DELIVERY_INFO = '[class*="DeliveryInfo"]'
_BADGE_IMAGES = '[class*="ImageBadge"] img'
_CASH_BENEFIT_TEXT = '[class*="cash-benefit"] span'
_CASH_BENEFIT_IMAGE = '[class*="cash-benefit"] img'

_NON_RENDERED_TAGS = ["script", "style", "noscript", "template"]


@dataclass
class ListingEntry:
    """검색 결과 리스트의 항목 하나 (광고 포함, 표시 순서)"""

    position: int  # 페이지 내 1부터 (광고 포함)
    data_id: Optional[str]
    href: Optional[str]
    is_ad: bool
    node: Any = None  # selectolax Node

    @property
    def ids(self) -> ProductIds:
        return extract_product_ids(self.href)

    @property
    def primary_id(self) -> Optional[str]:
        """링크의 /vp/products/<id>, 없으면 data-id"""
        return self.ids.product_id or self.data_id

    def matches_primary(self, code: str) -> bool:
        return code in (self.data_id, self.ids.product_id)

    def matches_secondary(self, code: str) -> bool:
        ids = self.ids
        return code in (ids.item_id, ids.vendor_item_id)


# ----------------------------------------------------------------------
# 공통 헬퍼
# ----------------------------------------------------------------------


def parse_html(html: str) -> HTMLParser:
    return HTMLParser(html or "")


def node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return collapse_whitespace(node.text(deep=True, separator=" "))


def attr(node: Optional[Node], name: str) -> Optional[str]:
    if node is None:
        return None
    value = node.attributes.get(name)
    return value if value else None


def pick_text(root: Node, selectors: Iterable[str]) -> Optional[str]:
    """selector 순서대로 시도해 처음으로 비어있지 않은 텍스트 반환"""
    for selector in selectors:
        text = node_text(root.css_first(selector))
        if text:
            return text
    return None


def first_match(root: Node, selectors: Iterable[str]) -> Optional[Node]:
    for selector in selectors:
        node = root.css_first(selector)
        if node is not None:
            return node
    return None


def image_url(img: Node) -> str:
    """img src, 없으면 srcset 마지막 후보"""
    src = attr(img, "src")
    if src:
        return src
    srcset = attr(img, "srcset")
    if not srcset:
        return ""
    last = srcset.split(",")[-1].strip()
    return last.split(" ")[0] if last else ""


def icon_key_from_url(url: Optional[str]) -> Optional[str]:
    """배지 이미지 파일명에서 아이콘 키 추출

    Examples:
        >>> icon_key_from_url("//image.coupangcdn.com/badge/rocketwow-bi-16@2x.png?v=1")
        'rocketwow-bi-16'
    """
    if not url:
        return None
    file_name = url.split("?")[0].split("/")[-1]
    key = file_name.split("@")[0]
    return key or None


# ----------------------------------------------------------------------
# 페이지 단위
# ----------------------------------------------------------------------


def visible_body_text(tree: HTMLParser) -> str:
    """스크립트/스타일을 제외한 body 텍스트 (innerText 근사)"""
    body = tree.body
    if body is None:
        return ""
    clone = HTMLParser(body.html or "")
    clone.strip_tags(_NON_RENDERED_TAGS)
    return node_text(clone.body)


def has_error_signature(body_text: str, title: str) -> bool:
    """렌더링된 페이지에 차단/프로토콜 에러 문구가 있는지"""
    signatures = load_page_signatures()
    return contains_any(body_text, signatures["error_body"]) or contains_any(title, signatures["error_title"])


def looks_like_error_page(url: str, title: str) -> bool:
    """상품 리스트 대기 실패 시 URL/제목으로 에러 페이지 여부 판단"""
    signatures = load_page_signatures()
    return contains_any(url, signatures["error_url"]) or contains_any(title, signatures["error_title"])


def has_no_result_marker(tree: HTMLParser, body_text: Optional[str] = None) -> bool:
    """검색 결과 없음 표시 (요소 또는 문구)"""
    if tree.css_first(NO_RESULT_SELECTOR) is not None:
        return True
    text = body_text if body_text is not None else visible_body_text(tree)
    return contains_any(text, load_page_signatures()["no_result_text"])


def parse_entries(tree: HTMLParser) -> list[ListingEntry]:
    """#product-list 항목을 표시 순서대로 (광고 포함)"""
    entries: list[ListingEntry] = []
    for idx, li in enumerate(tree.css(PRODUCT_LIST_SELECTOR), start=1):
        link = li.css_first("a")
        href = attr(link, "href")
        is_ad = li.css_first(AD_MARK_SELECTOR) is not None or AD_TRACKING_PARAM in (href or "")
        entries.append(
            ListingEntry(
                position=idx,
                data_id=attr(li, "data-id"),
                href=href,
                is_ad=is_ad,
                node=li,
            )
        )
    return entries


# ----------------------------------------------------------------------
# 필드 추출 (항목 단위)
# ----------------------------------------------------------------------


def extract_sold_out(li: Node) -> tuple[bool, Optional[str]]:
    node = li.css_first(_SOLDOUT_SELECTOR)
    if node is None:
        return False, None
    return True, node_text(node) or None


def extract_identity(li: Node) -> tuple[Optional[str], Optional[str]]:
    """(상품명, 썸네일) - 첫 번째 img의 alt/src"""
    img = li.css_first("img")
    if img is None:
        return None, None
    return attr(img, "alt"), attr(img, "src")


def extract_rating(li: Node) -> tuple[Optional[float], Optional[int]]:
    container = li.css_first(_RATING_CONTAINER)
    if container is None:
        return None, None
    rating = extract_decimal(node_text(container.css_first(_RATING_VALUE)))
    review_count = extract_count(node_text(container.css_first(_RATING_COUNT)))
    return rating, review_count


def extract_prices(li: Node) -> dict[str, Optional[int]]:
    return {
        "list_price": to_number(pick_text(li, _LIST_PRICE_SELECTORS)),
        "discount_percent": to_number(pick_text(li, _DISCOUNT_SELECTORS)),
        "sale_price": to_number(pick_text(li, _SALE_PRICE_SELECTORS)),
    }


def price_scope(li: Node) -> Node:
    return first_match(li, _PRICE_SCOPE_SELECTORS) or li


def extract_unit_price(li: Node) -> Optional[tuple[str, int]]:
    """가격 영역에서 "(1세트당 1,770원)" 형태 단가"""
    for node in price_scope(li).css(_UNIT_TEXT_SELECTOR):
        parsed = parse_unit_price(node_text(node))
        if parsed:
            return parsed
    return None


def extract_discount_tags(li: Node) -> list[str]:
    return detect_keywords(node_text(price_scope(li)), load_discount_keywords())


def extract_shipping_flags(li: Node) -> tuple[bool, bool]:
    """(무료배송, 무료반품) - 배송 영역, 없으면 항목 전체 텍스트"""
    text = node_text(li.css_first(_DELIVERY_INFO)) or node_text(li)
    return "무료배송" in text, "무료반품" in text


def extract_featured(li: Node) -> bool:
    """쿠팡추천(coupick) 배지"""
    if li.css_first('[class*="ImageBadge_coupick__"]') is not None:
        return True
    for img in li.css("img"):
        if attr(img, "alt") == "쿠팡추천":
            return True
        if "coupick" in (attr(img, "src") or "").lower():
            return True
    return False


def extract_point_benefit(li: Node) -> Optional[str]:
    text = pick_text(li, (_CASH_BENEFIT_TEXT,))
    if text:
        return text
    return attr(li.css_first(_CASH_BENEFIT_IMAGE), "alt")


def extract_delivery_badge_keys(li: Node) -> list[str]:
    keys: list[str] = []
    for img in li.css(_BADGE_IMAGES):
        key = icon_key_from_url(image_url(img))
        if key:
            keys.append(key)
    return keys


def extract_delivery_text(li: Node) -> Optional[str]:
    return node_text(li.css_first(_DELIVERY_INFO)) or None


def extract_fields(entry: ListingEntry) -> dict[str, Any]:
    """항목 하나에서 ProductRecord 필드(rank 제외) 추출"""
    li: Node = entry.node
    sold_out, sold_out_text = extract_sold_out(li)
    name, thumbnail = extract_identity(li)
    rating, review_count = extract_rating(li)
    free_ship, free_return = extract_shipping_flags(li)

    fields: dict[str, Any] = {
        "name": name,
        "thumbnail_ref": thumbnail,
        "rating": rating,
        "review_count": review_count,
        "free_ship": free_ship,
        "free_return": free_return,
        "featured": extract_featured(li),
        "discount_tags": extract_discount_tags(li),
        "point_benefit": extract_point_benefit(li),
        "delivery_badge_keys": extract_delivery_badge_keys(li),
        "delivery_text": extract_delivery_text(li),
        "sold_out": sold_out,
        "sold_out_text": sold_out_text,
        "detail_url": normalize_href(entry.href or "") or None,
    }

    if not sold_out:
        fields.update(extract_prices(li))
        unit = extract_unit_price(li)
        if unit:
            fields["unit_label"], fields["unit_price"] = unit

    return fields
