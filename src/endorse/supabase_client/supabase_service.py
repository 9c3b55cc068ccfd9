import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from dotenv import load_dotenv
from supabase import create_client, Client

from ..catalog import (
    BRAND_COLUMNS,
    BUSINESS_CAUSE_COLUMNS,
    BUSINESS_COLUMNS,
    LOCATION_COLUMNS,
    MATRIX_COLUMNS,
    USER_CAUSE_COLUMNS,
    VALUE_COLUMNS,
    build_catalog,
)
from ..models import Catalog, UserCause, parse_causes

# Load environment variables
load_dotenv()

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 1000


class SupabaseCatalogService:
    """Read-only access to the catalog tables stored in Supabase"""

    def __init__(self, client: Optional[Client] = None):
        if client is not None:
            self.client = client
            return

        url = os.getenv("SUPABASE_URL")
        # Use service role key for full read access
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment")

        self.client = create_client(url, key)

    def _fetch_all(self, table: str, columns: Sequence[str]) -> List[Dict[str, Any]]:
        """Page through a table; PostgREST caps a single response"""
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            response = (self.client.table(table)
                        .select(",".join(columns))
                        .range(offset, offset + PAGE_SIZE - 1)
                        .execute())
            batch = response.data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    def _frame(self, table: str, columns: Sequence[str]) -> pd.DataFrame:
        df = pd.DataFrame(self._fetch_all(table, columns), columns=list(columns))
        return df.astype(object).where(df.notna(), "")

    # ==================== CATALOG ====================

    def get_values(self) -> pd.DataFrame:
        """Get the value catalog"""
        return self._frame("values", VALUE_COLUMNS)

    def get_value_matrix(self) -> pd.DataFrame:
        """Get ranked brand names per value and stance"""
        return self._frame("value_matrix", MATRIX_COLUMNS)

    def get_brands(self) -> pd.DataFrame:
        """Get the brand catalog"""
        return self._frame("brands", BRAND_COLUMNS)

    def get_businesses(self) -> pd.DataFrame:
        """Get the business catalog"""
        return self._frame("businesses", BUSINESS_COLUMNS)

    def get_business_causes(self) -> pd.DataFrame:
        """Get every business stance"""
        return self._frame("business_causes", BUSINESS_CAUSE_COLUMNS)

    def get_business_locations(self) -> pd.DataFrame:
        """Get every business location"""
        return self._frame("business_locations", LOCATION_COLUMNS)

    def load_catalog(self) -> Catalog:
        """Fetch every catalog table and build a read-only snapshot"""
        LOGGER.info("Loading catalog from Supabase")
        return build_catalog(
            values=self.get_values(),
            matrix=self.get_value_matrix(),
            brands=self.get_brands(),
            businesses=self.get_businesses(),
            business_causes=self.get_business_causes(),
            locations=self.get_business_locations(),
        )

    # ==================== USER CAUSES ====================

    def get_user_causes(self, user_id: str) -> Tuple[UserCause, ...]:
        """Get one user's declared cause set"""
        response = (self.client.table("user_causes")
                    .select(",".join(USER_CAUSE_COLUMNS))
                    .eq("user_id", user_id)
                    .execute())
        return parse_causes(response.data or [])


# Singleton instance
_supabase_service = None


def get_supabase_service() -> SupabaseCatalogService:
    """Get or create the singleton SupabaseCatalogService instance"""
    global _supabase_service
    if _supabase_service is None:
        _supabase_service = SupabaseCatalogService()
    return _supabase_service
