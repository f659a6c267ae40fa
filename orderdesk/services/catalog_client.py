# orderdesk/services/catalog_client.py
from typing import List

import requests

from orderdesk.domain.schemas import Product
from orderdesk.utils.retry import http_retry
from orderdesk.utils.settings import CATALOG_SERVICE_URL
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """Read-only access to the product catalog."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: str) -> Product | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return Product.model_validate(resp.json())

    @http_retry()
    def fetch_products(self) -> List[Product]:
        url = f"{self.base_url}/products"
        logger.info(f"CatalogClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return [Product.model_validate(p) for p in resp.json()]
