from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PayloadValidationError

from .errors import ValidationError
from .models import ExternalProduct, PricingRules


class PricingRulesPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    strategy: Literal["percent", "fixed", "hybrid"]
    percent: float | None = Field(default=None, examples=[20])
    fixed: float | None = Field(default=None, examples=[500])
    min_margin: float | None = Field(default=None, alias="minMargin")
    round_to: float | None = Field(default=None, alias="roundTo", examples=[50])
    psychological: bool = False

    def to_rules(self) -> PricingRules:
        return PricingRules(
            strategy=self.strategy,
            percent=self.percent,
            fixed=self.fixed,
            min_margin=self.min_margin,
            round_to=self.round_to,
            psychological=self.psychological,
        )


class ExternalProductPayload(BaseModel):
    external_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(default=0, ge=0)
    image_url: str = ""
    category: str = "Auto"
    supplier_name: str = ""
    stock_quantity: int | None = None
    currency: str | None = None
    url: str | None = None

    @field_validator("description", "image_url", "category", "supplier_name", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_entity(self) -> ExternalProduct:
        return ExternalProduct(
            external_id=self.external_id,
            name=self.name,
            description=self.description,
            price=self.price,
            image_url=self.image_url,
            category=self.category or "Auto",
            supplier_name=self.supplier_name,
            stock_quantity=self.stock_quantity,
            currency=self.currency,
            url=self.url,
        )

    @classmethod
    def parse_candidate(cls, raw: Any) -> ExternalProduct:
        """Validate one batch entry; failures raise the pipeline's ``ValidationError``."""
        if isinstance(raw, ExternalProduct):
            return raw
        try:
            return cls.model_validate(raw).to_entity()
        except PayloadValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            detail = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
            raise ValidationError(f"Invalid candidate: {detail}") from exc


class ImportByUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(default=None, examples=["https://www.aliexpress.com/item/1005008518647948.html"])
    pricing_rules: PricingRulesPayload | None = Field(default=None, alias="pricingRules")


class ImportBatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supplier_label: str | None = Field(default=None, alias="supplierLabel", examples=["Alibaba"])
    # Validated per entry inside the batch; see ExternalProductPayload.parse_candidate.
    products: list[Any] | None = None
    pricing_rules: PricingRulesPayload | None = Field(default=None, alias="pricingRules")
