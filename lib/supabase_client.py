# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single service-role client
# and provides specialized lookups for the marketplace tables:
# - users, venue_owner_profiles, vendor_profiles
# - listings, amenities
# - bookings, payments
#
# End-user auth calls (sign-in, sign-up, ...) must not share state between
# requests, so they get a fresh anon-key client from new_auth_client().
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   listing = SupabaseClient.fetch_listing(listing_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code for "no rows returned" on .single()
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages: errors should tell HOW to fix,
    not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one service-role client instance is shared
    across the application. All methods are class methods for easy access
    without instantiation.

    Example:
        listing = SupabaseClient.fetch_listing("550e8400-...")
        user = SupabaseClient.fetch_user(user_id)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership checks are therefore enforced in the service layer.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def new_auth_client(cls) -> Client:
        """
        Create a short-lived anon-key client for end-user auth calls.

        The auth client stores the signed-in session on itself, so it is
        never shared between requests.

        Raises:
            SupabaseClientError: If client creation fails
        """
        try:
            return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create Supabase auth client: {e}",
                code="AUTH_CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @classmethod
    def _fetch_one(
        cls,
        table: str,
        column: str,
        value: str | UUID,
        code: str,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a single row where `column` equals `value`.

        Returns:
            Row dict, or None if no row matches

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        client = cls.get_client()
        value_str = cls._normalize_uuid(value)

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq(column, value_str)
                .single()
                .execute()
            )

            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code=code,
                suggestion=f"Check that the {column} exists and the {table} table is accessible",
                details={column: value_str}
            )

    # -------------------------------------------------------------------------
    # Users & Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a row from public.users.

        Returns:
            User dict, or None if the auth user has no row yet
        """
        return cls._fetch_one("users", "id", user_id, "FETCH_USER_FAILED")

    @classmethod
    def fetch_profile(cls, table: str, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a role-specific profile (venue_owner_profiles or vendor_profiles).

        Returns:
            Profile dict, or None if the user hasn't created one
        """
        return cls._fetch_one(table, "user_id", user_id, "FETCH_PROFILE_FAILED")

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_listing(cls, listing_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a listing row by ID (without amenities)."""
        return cls._fetch_one("listings", "id", listing_id, "FETCH_LISTING_FAILED")

    @classmethod
    def fetch_amenities(cls, listing_id: str | UUID) -> dict[str, Any] | None:
        """Fetch the amenities row attached to a listing."""
        return cls._fetch_one("amenities", "listing_id", listing_id, "FETCH_AMENITIES_FAILED")

    # -------------------------------------------------------------------------
    # Bookings & Payments
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_booking(cls, booking_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a booking row by ID."""
        return cls._fetch_one("bookings", "id", booking_id, "FETCH_BOOKING_FAILED")

    @classmethod
    def fetch_payment_by_intent(cls, payment_intent_id: str) -> dict[str, Any] | None:
        """Fetch the payments row recorded for a gateway payment intent."""
        return cls._fetch_one(
            "payments",
            "stripe_payment_intent_id",
            payment_intent_id,
            "FETCH_PAYMENT_FAILED",
        )

    # -------------------------------------------------------------------------
    # Generic Write Helpers
    # -------------------------------------------------------------------------

    @classmethod
    def insert_row(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a row and return it as stored.

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(data).execute()

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA",
                details={"table": table}
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                suggestion="Check required columns and foreign keys",
                details={"table": table}
            )

    @classmethod
    def update_rows(
        cls,
        table: str,
        column: str,
        value: str | UUID,
        data: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """
        Update rows where `column` equals `value`.

        Returns:
            The updated rows (empty if nothing matched)

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()
        value_str = cls._normalize_uuid(value)

        try:
            response = (
                client.table(table)
                .update(data)
                .eq(column, value_str)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table}: {e}",
                code="UPDATE_FAILED",
                details={"table": table, column: value_str}
            )
