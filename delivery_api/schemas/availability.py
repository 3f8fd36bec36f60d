"""
Availability Schemas for the BebCom Delivery API
================================================

Pydantic models for the availability endpoints. The storefront speaks
camelCase JSON, so fields carry camelCase aliases; populate_by_name lets the
Python side construct them with snake_case names.

Request bodies are checked here, before anything reaches the availability
service: the body must be an object, the patch must be an object, and every
value must be a real JSON boolean (StrictBool rejects 1, "true", null).

Endpoint Coverage:
------------------
- GET /api/product-availability -> ProductAvailabilityOut
- GET /api/flavor-availability -> FlavorAvailabilityOut
- GET /api/sync-all -> SyncAllOut
- POST /api/admin/product-availability/bulk <- ProductAvailabilityUpdate
- POST /api/admin/flavor-availability/bulk <- FlavorAvailabilityUpdate
- POST /api/admin/reset-data <- ResetRequest

Usage:
------
    # Mark one product out of stock and another back in stock
    POST /api/admin/product-availability/bulk
    {"productAvailability": {"p1": false, "p2": true}, "adminName": "Maria"}
"""

from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProductAvailabilityUpdate(_CamelModel):
    """
    Bulk update of product availability.

    Attributes:
        product_availability: Product id -> available flag. Merged into the
                              current map; products not listed are untouched.
        actor: Name recorded in the audit log ("adminName" is also accepted).
    """
    product_availability: Dict[str, StrictBool] = Field(..., alias="productAvailability")
    actor: Optional[str] = Field(
        None,
        max_length=100,
        validation_alias=AliasChoices("actor", "adminName"),
    )


class FlavorAvailabilityUpdate(_CamelModel):
    """Bulk update of flavor availability, keyed by "type_name" flavor keys."""
    flavor_availability: Dict[str, StrictBool] = Field(..., alias="flavorAvailability")
    actor: Optional[str] = Field(
        None,
        max_length=100,
        validation_alias=AliasChoices("actor", "adminName"),
    )


class ResetRequest(_CamelModel):
    actor: Optional[str] = Field(
        None,
        max_length=100,
        validation_alias=AliasChoices("actor", "adminName"),
    )


class ProductAvailabilityOut(_CamelModel):
    success: bool = True
    product_availability: Dict[str, bool] = Field(..., alias="productAvailability")
    count: int
    last_updated: Optional[str] = Field(None, alias="lastUpdated")
    offline: bool
    timestamp: str


class FlavorAvailabilityOut(_CamelModel):
    success: bool = True
    flavor_availability: Dict[str, bool] = Field(..., alias="flavorAvailability")
    count: int
    last_updated: Optional[str] = Field(None, alias="lastUpdated")
    offline: bool
    timestamp: str


class AvailabilityCounts(BaseModel):
    products: int
    flavors: int


class SyncAllOut(_CamelModel):
    success: bool = True
    message: str
    product_availability: Dict[str, bool] = Field(..., alias="productAvailability")
    flavor_availability: Dict[str, bool] = Field(..., alias="flavorAvailability")
    counts: AvailabilityCounts
    offline: bool
    timestamp: str


class BulkUpdateOut(BaseModel):
    success: bool = True
    count: int
    message: str
    timestamp: str
