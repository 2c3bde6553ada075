"""
Order extraction from pasted customer chats.

Admins paste a WhatsApp/Instagram conversation and get back a draft order
matched against the organization's catalogue. The model is asked for a
JSON object; when it is not configured, fails, or replies with something
that cannot be parsed, a line-oriented parser reads labelled fields
(``Name:``, ``Alamat:``, ``Items:`` ...) directly from the chat.

Nothing here creates an order: the draft is reviewed and then submitted
through ``create_order``.
"""

import json
import re
from dataclasses import dataclass, field, replace
from typing import Any

from apps.accounts.models import Role
from apps.core.auth import AuthContext
from apps.core.exceptions import ExternalServiceError, ValidationError
from apps.core.logging import get_logger
from apps.inventory.models import Product
from apps.notifications import llm

logger = get_logger(__name__)

EXTRACTION_TEMPERATURE = 0.1
EXTRACTION_MAX_TOKENS = 1000
LOW_CONFIDENCE = 0.7
REQUIRED_FIELDS = ("customer_name", "address", "city", "province", "postal_code")

EXTRACTION_SYSTEM_PROMPT = """You are an order data extraction specialist for WhatThePack.
Extract order details from customer chat conversations.

Available products in this catalog:
{catalogue}

Extract and return ONLY a JSON object with these exact fields:
{{
  "customer_name": "Full customer name",
  "customer_phone": "Phone number with country code if available",
  "recipient_name": "Recipient name if different from customer",
  "recipient_phone": "Recipient phone if different",
  "address": "Complete street address",
  "city": "City name",
  "province": "State or province",
  "postal_code": "ZIP or postal code",
  "country": "Country code (2 letters)",
  "items": [{{"sku": "Product SKU from catalog", "name": "Product name as written", "quantity": 1, "notes": ""}}],
  "notes": "Any additional order notes or special instructions",
  "payment_method": "Payment method mentioned",
  "payment_confirmed": false,
  "confidence": 0.0
}}

Rules:
1. Match products to catalog by name or SKU
2. If product not found in catalog, set sku to null and include in notes
3. Extract phone numbers with country code if available
4. Parse addresses carefully - separate street, city, province, postal
5. Set confidence between 0 and 1 based on how complete the information is
6. If critical information is missing (like address), set confidence below 0.7

Return ONLY the JSON object, no explanations."""

_FENCE_RE = re.compile(r"```(?:json)?\n([\s\S]*?)\n```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_UNQUOTED_KEY_RE = re.compile(r"([,{\s])([a-zA-Z0-9_]+)\s*:")
_SINGLE_QUOTED_RE = re.compile(r"'([^'\\]*(?:\\.[^'\\]*)*)'")

_NEXT_FIELD_RE = re.compile(
    r"^(courier|kurir|payment|pembayaran|note|catatan|recipient|penerima|nama|name|phone|telepon|items|barang|pesanan)",
    re.IGNORECASE,
)
_ITEMS_HEADER_RE = re.compile(r"^\s*(items|barang|order|pesanan)\s*:", re.IGNORECASE)
_ITEM_LINE_RE = re.compile(r"^\s*(?:[-•*\d+.)]+\s*)?(.+?)(?:\s*[x×]\s*(\d+)|\s*\((\d+)[^)]+\))?\s*$", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*[-•*]")
_POSTAL_RE = re.compile(r"(?:^|\D)(\d{5})(?!\d)")
_CITY_RE = re.compile(r"([A-Za-z ]+?)\s*,\s*\d{5}")
_PAID_RE = re.compile(r"paid|lunas|transfer selesai|sudah bayar", re.IGNORECASE)
_INDONESIA_RE = re.compile(r"\b(indonesia|id)\b", re.IGNORECASE)
_LOCAL_PHONE_RE = re.compile(r"(?:^|\D)0\d{8,14}(?:\D|$)")


@dataclass(frozen=True)
class CatalogueEntry:
    product_id: int
    sku: str
    name: str

    @property
    def aliases(self) -> tuple[str, str]:
        return self.name.lower(), self.sku.lower()


@dataclass
class ExtractedItem:
    name: str | None
    quantity: int = 1
    sku: str | None = None
    product_id: int | None = None
    notes: str = ""


@dataclass
class ExtractedOrder:
    customer_name: str = ""
    customer_phone: str = ""
    recipient_name: str = ""
    recipient_phone: str = ""
    address: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = ""
    items: list[ExtractedItem] = field(default_factory=list)
    notes: str = ""
    payment_method: str = ""
    payment_confirmed: bool = False
    confidence: float | None = None


@dataclass(frozen=True)
class ExtractionResult:
    order: ExtractedOrder
    confidence: float
    warnings: list[str]
    used_fallback: bool


@dataclass(frozen=True)
class ItemAvailability:
    sku: str
    available: bool
    name: str
    stock_quantity: int
    requested_quantity: int
    can_fulfill: bool


@dataclass(frozen=True)
class AvailabilityResult:
    items: list[ItemAvailability]
    can_fulfill_order: bool


# =============================================================================
# Normalisation
# =============================================================================


def clean_phone_number(phone: str) -> str:
    """Digits and ``+`` only; Indonesian local numbers become ``+62...``."""
    cleaned = re.sub(r"[^\d+]", "", phone)
    if not cleaned.startswith("+") and re.fullmatch(r"0\d{8,14}", cleaned):
        cleaned = f"+62{cleaned[1:]}"
    elif not cleaned.startswith("+") and re.fullmatch(r"62\d{8,14}", cleaned):
        cleaned = f"+{cleaned}"
    if not cleaned.startswith("+") and len(cleaned) == 10:
        cleaned = f"+1{cleaned}"
    return cleaned


def find_product_by_name(name: str, catalogue: list[CatalogueEntry]) -> CatalogueEntry | None:
    """Exact name or SKU match first, then substring match either way."""
    search = name.lower().strip()
    if not search:
        return None
    for entry in catalogue:
        if search in entry.aliases:
            return entry
    for entry in catalogue:
        product_name = entry.name.lower()
        if search in product_name or product_name in search or any(search in a for a in entry.aliases):
            return entry
    return None


def calculate_confidence(order: ExtractedOrder) -> float:
    """Share of completeness checks passed: required fields, phone, items present, items matched."""
    score = sum(1 for name in REQUIRED_FIELDS if getattr(order, name).strip())
    checks = len(REQUIRED_FIELDS) + 3
    if len(order.customer_phone) > 5:
        score += 1
    if order.items:
        score += 1
        if all(item.sku and item.quantity > 0 for item in order.items):
            score += 1
    return min(1.0, score / checks)


def generate_warnings(order: ExtractedOrder, confidence: float) -> list[str]:
    warnings = []
    if not order.customer_name.strip():
        warnings.append("Customer name is missing")
    if not order.address.strip():
        warnings.append("Street address is missing")
    if not order.city.strip():
        warnings.append("City is missing")
    if not order.postal_code.strip():
        warnings.append("Postal code is missing")
    if len(order.customer_phone) < 5:
        warnings.append("Customer phone number is missing or incomplete")
    if not order.items:
        warnings.append("No items found in the order")
    else:
        invalid = [item for item in order.items if not item.sku or item.quantity < 1]
        if invalid:
            warnings.append(f"{len(invalid)} item(s) have missing SKU or invalid quantity")
    if confidence < LOW_CONFIDENCE:
        warnings.append("Low confidence in extracted data - please review carefully")
    return warnings


def validate_extracted_order(order: ExtractedOrder, catalogue: list[CatalogueEntry]) -> ExtractedOrder:
    """
    Clean phones and resolve every item against the catalogue.

    An SKU the catalogue does not know is dropped and the item is matched by
    name instead; unmatched items keep ``sku=None``.
    """
    by_sku = {entry.sku.lower(): entry for entry in catalogue}
    items = []
    for item in order.items:
        entry = by_sku.get(item.sku.lower()) if item.sku else None
        if entry is None and item.name:
            entry = find_product_by_name(item.name, catalogue)
        items.append(
            replace(
                item,
                quantity=max(1, item.quantity),
                sku=entry.sku if entry else None,
                product_id=entry.product_id if entry else None,
                name=entry.name if entry else item.name,
            )
        )
    cleaned = replace(
        order,
        customer_phone=clean_phone_number(order.customer_phone) if order.customer_phone else "",
        recipient_phone=clean_phone_number(order.recipient_phone) if order.recipient_phone else "",
        items=items,
    )
    if cleaned.confidence is None:
        cleaned.confidence = calculate_confidence(cleaned)
    return cleaned


# =============================================================================
# Model reply parsing
# =============================================================================


def _json_candidate(text: str) -> str:
    trimmed = text.strip()
    fenced = _FENCE_RE.search(trimmed)
    if fenced:
        return fenced.group(1).strip()
    if trimmed.startswith("{") and trimmed.endswith("}"):
        return trimmed
    first, last = trimmed.find("{"), trimmed.rfind("}")
    if first != -1 and last > first:
        return trimmed[first : last + 1]
    return trimmed


def _loads_object(candidate: str) -> dict | None:
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def parse_flexible_json(text: str) -> dict | None:
    """
    Parse the JSON object in a model reply.

    Tolerates code fences, surrounding prose, trailing commas, unquoted keys
    and single-quoted strings. Returns None when nothing parses.
    """
    candidate = _json_candidate(text)
    parsed = _loads_object(candidate)
    if parsed is not None:
        return parsed

    candidate = _TRAILING_COMMA_RE.sub(r"\1", candidate)
    parsed = _loads_object(candidate)
    if parsed is not None:
        return parsed

    if "{" in candidate or "[" in candidate:
        candidate = _UNQUOTED_KEY_RE.sub(r'\1"\2":', candidate)
        candidate = _SINGLE_QUOTED_RE.sub(r'"\1"', candidate)
        return _loads_object(candidate)
    return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _quantity(value: Any) -> int:
    match = re.match(r"\s*(\d+)", str(value))
    return max(1, int(match.group(1))) if match else 1


def order_from_payload(payload: dict[str, Any]) -> ExtractedOrder:
    """Build a draft from the model's JSON, ignoring unknown keys and bad types."""
    raw_items = payload.get("items")
    items = [
        ExtractedItem(
            name=_text(raw.get("name")) or None,
            quantity=_quantity(raw.get("quantity", 1)),
            sku=_text(raw.get("sku")) or None,
            notes=_text(raw.get("notes")),
        )
        for raw in (raw_items if isinstance(raw_items, list) else [])
        if isinstance(raw, dict)
    ]
    confidence = payload.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, int | float):
        confidence = None
    else:
        confidence = min(1.0, max(0.0, float(confidence)))

    return ExtractedOrder(
        customer_name=_text(payload.get("customer_name")),
        customer_phone=_text(payload.get("customer_phone")),
        recipient_name=_text(payload.get("recipient_name")),
        recipient_phone=_text(payload.get("recipient_phone")),
        address=_text(payload.get("address")),
        city=_text(payload.get("city")),
        province=_text(payload.get("province")),
        postal_code=_text(payload.get("postal_code")),
        country=_text(payload.get("country")),
        items=items,
        notes=_text(payload.get("notes")),
        payment_method=_text(payload.get("payment_method")),
        payment_confirmed=payload.get("payment_confirmed") is True,
        confidence=confidence,
    )


# =============================================================================
# Deterministic parser
# =============================================================================


def _labelled_value(lines: list[str], keys: list[str]) -> str:
    """Text after the first ``key`` found (as a whole word) on any line."""
    for line in lines:
        for key in keys:
            match = re.search(rf"\b{re.escape(key)}\b", line, re.IGNORECASE)
            if match:
                value = re.sub(r"^\s*[:-]\s*", "", line[match.end() :]).strip()
                if value:
                    return value
    return ""


def _address_block(lines: list[str]) -> str:
    for i, line in enumerate(lines):
        if line.strip().lower().startswith(("address", "alamat")):
            first = ":".join(line.split(":")[1:]).strip()
            parts = [first] if first else []
            for following in lines[i + 1 :]:
                text = following.strip()
                if not text or _NEXT_FIELD_RE.match(text):
                    break
                parts.append(text)
            return re.sub(r"\s+", " ", " ".join(parts)).strip()
    return ""


def _parse_items(lines: list[str], catalogue: list[CatalogueEntry]) -> list[ExtractedItem]:
    items = []

    def add(line: str) -> None:
        match = _ITEM_LINE_RE.match(line)
        if not match:
            return
        name = match.group(1).strip()
        if not name:
            return
        entry = find_product_by_name(name, catalogue)
        items.append(
            ExtractedItem(
                name=name,
                quantity=max(1, int(match.group(2) or match.group(3) or 1)),
                sku=entry.sku if entry else None,
            )
        )

    start = next((i for i, line in enumerate(lines) if _ITEMS_HEADER_RE.match(line)), None)
    if start is None:
        for line in lines:
            if _BULLET_RE.match(line):
                add(line)
        return items

    for line in lines[start + 1 :]:
        text = line.strip()
        if not text or _NEXT_FIELD_RE.match(text):
            break
        add(line)
    return items


def fallback_extract_order(chat_text: str, catalogue: list[CatalogueEntry]) -> ExtractedOrder:
    """Read labelled fields (English or Indonesian) straight from the chat."""
    raw = chat_text.replace("\r", "")
    lines = raw.split("\n")

    address = _address_block(lines)
    recipient_name = _labelled_value(lines, ["recipient's name", "nama penerima", "recipient", "penerima"])
    customer_name = _labelled_value(lines, ["name", "customer", "pemesan", "nama"])
    recipient_phone = _labelled_value(lines, ["recipient's phone", "phone", "telepon", "hp", "wa", "whatsapp"])
    customer_phone = _labelled_value(lines, ["customer phone", "phone", "telepon", "hp", "wa", "whatsapp"])
    courier = _labelled_value(lines, ["courier", "kurir"])
    payment_method = _labelled_value(lines, ["payment", "pembayaran", "method", "metode"])

    notes = _labelled_value(lines, ["note", "catatan"])
    if courier:
        notes = f"{notes} | Courier: {courier}" if notes else f"Courier: {courier}"

    postal = _POSTAL_RE.search(address)
    city = _CITY_RE.search(address)
    country = "ID" if _INDONESIA_RE.search(raw) or _LOCAL_PHONE_RE.search(raw) else ""

    order = ExtractedOrder(
        customer_name=recipient_name or customer_name,
        customer_phone=customer_phone or recipient_phone,
        recipient_name=recipient_name,
        recipient_phone=recipient_phone,
        address=address,
        city=city.group(1).strip() if city else "",
        province="DKI Jakarta" if "dki jakarta" in address.lower() else "",
        postal_code=postal.group(1) if postal else "",
        country=country,
        items=_parse_items(lines, catalogue),
        notes=notes,
        payment_method=payment_method,
        payment_confirmed=bool(_PAID_RE.search(raw)),
    )
    order.confidence = calculate_confidence(order)
    return order


# =============================================================================
# Services
# =============================================================================


def _catalogue(org) -> list[CatalogueEntry]:
    return [
        CatalogueEntry(product_id=p.id, sku=p.sku, name=p.name)
        for p in Product.objects.filter(organization=org).order_by("sku")
    ]


def build_extraction_prompt(catalogue: list[CatalogueEntry]) -> str:
    entries = [{"sku": e.sku, "name": e.name, "aliases": list(e.aliases)} for e in catalogue]
    return EXTRACTION_SYSTEM_PROMPT.format(catalogue=json.dumps(entries, indent=2))


def extract_order_from_chat(auth: AuthContext, chat_text: str) -> ExtractionResult:
    """
    Draft an order from a pasted chat (owner or admin).

    Prices never leave the server: the model only sees SKUs and names.

    Raises:
        ValidationError: If the chat is empty
    """
    _, org = auth.require_role(Role.OWNER, Role.ADMIN)
    if not chat_text.strip():
        raise ValidationError("Chat text is required")

    catalogue = _catalogue(org)
    warnings: list[str] = []
    payload = None
    if llm.is_llm_configured():
        try:
            reply = llm.chat_completion(
                build_extraction_prompt(catalogue),
                f"Extract order details from this chat:\n\n{chat_text}",
                temperature=EXTRACTION_TEMPERATURE,
                max_tokens=EXTRACTION_MAX_TOKENS,
            )
        except ExternalServiceError as e:
            warnings.append(f"LLM extraction failed; used deterministic parser: {e}")
        else:
            payload = parse_flexible_json(reply)
            if payload is None:
                warnings.append("LLM reply could not be parsed; used deterministic parser")

    used_fallback = payload is None
    draft = fallback_extract_order(chat_text, catalogue) if used_fallback else order_from_payload(payload)
    order = validate_extracted_order(draft, catalogue)
    confidence = order.confidence if order.confidence is not None else 0.0
    warnings += generate_warnings(order, confidence)

    logger.info(
        "order_extracted",
        org_id=org.id,
        used_fallback=used_fallback,
        items=len(order.items),
        confidence=round(confidence, 2),
    )
    return ExtractionResult(order=order, confidence=confidence, warnings=warnings, used_fallback=used_fallback)


def validate_product_availability(auth: AuthContext, lines: list[tuple[str, int]]) -> AvailabilityResult:
    """
    Check requested ``(sku, quantity)`` lines against stock (owner or admin).

    Lines for the same SKU are summed before comparing with stock.
    """
    _, org = auth.require_role(Role.OWNER, Role.ADMIN)
    requested: dict[str, int] = {}
    for sku, quantity in lines:
        if sku:
            requested[sku] = requested.get(sku, 0) + quantity

    products = {p.sku: p for p in Product.objects.filter(organization=org, sku__in=requested)}
    items = []
    for sku, quantity in requested.items():
        product = products.get(sku)
        items.append(
            ItemAvailability(
                sku=sku,
                available=product is not None,
                name=product.name if product else "Unknown Product",
                stock_quantity=product.stock_quantity if product else 0,
                requested_quantity=quantity,
                can_fulfill=product is not None and product.stock_quantity >= quantity,
            )
        )
    return AvailabilityResult(items=items, can_fulfill_order=all(i.available and i.can_fulfill for i in items))
