from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_list_catalog_use_case
from app.api.schemas.billing import ErrorResponse
from app.api.schemas.catalog import PriceResponse, ProductResponse, ProductsResponse
from app.application.use_cases.list_catalog import ListCatalogUseCase
from app.domain.exceptions import UpstreamError


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/prices", response_model=ProductsResponse, responses={500: {"model": ErrorResponse}})
def list_prices(use_case: ListCatalogUseCase = Depends(get_list_catalog_use_case)):
    try:
        products = use_case.execute()
    except UpstreamError as exc:
        logger.error("catalog_router: list_prices_failed error=%s provider_message=%s", exc, exc.provider_message)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return ProductsResponse(
        products=[
            ProductResponse(
                id=product.id,
                name=product.name,
                description=product.description,
                active=product.active,
                prices=[
                    PriceResponse(
                        id=plan.id,
                        product_id=plan.product_id,
                        unit_amount=plan.unit_amount,
                        currency=plan.currency,
                        interval=plan.interval,
                        interval_count=plan.interval_count,
                        nickname=plan.nickname,
                        active=plan.active,
                    )
                    for plan in product.prices
                ],
            )
            for product in products
        ]
    )
