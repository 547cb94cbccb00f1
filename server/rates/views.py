import logging
import math
from typing import Optional

from django.apps import apps
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import RateServiceError
from .models import ConversionRequest
from .resolver import RateResolver

logger = logging.getLogger(__name__)

SERVICE_NAME = "exchange-rate-service"
SERVICE_VERSION = "1.0.0"


def get_resolver() -> RateResolver:
    return apps.get_app_config('rates').resolver


def error_response(error: str, message: str, code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    return Response({"error": error, "code": code, "message": message}, status=code)


def _currency_param(request, name: str, default: Optional[str] = None) -> Optional[str]:
    value = request.query_params.get(name) or default
    return value.upper() if value else value


class HealthView(APIView):
    """GET /health"""

    def get(self, request):
        return Response({
            "status": "ok",
            "service": SERVICE_NAME,
            "timestamp": timezone.now().isoformat(),
            "version": SERVICE_VERSION,
        }, status=status.HTTP_200_OK)


class ConvertView(APIView):
    """
    GET /api/v1/convert?from=USD&to=INR&amount=100&date=2025-08-01
    ``amount`` defaults to 1 and ``date`` to the latest rate.
    """

    def get(self, request):
        source_currency = _currency_param(request, 'from')
        destination_currency = _currency_param(request, 'to')
        if not source_currency or not destination_currency:
            return error_response("missing_parameters", "from and to currencies are required")

        amount = 1.0
        amount_param = request.query_params.get('amount')
        if amount_param:
            try:
                amount = float(amount_param)
            except ValueError:
                amount = math.nan
            if not math.isfinite(amount):
                return error_response("invalid_amount", "amount must be a valid number")

        conversion = ConversionRequest(
            from_currency=source_currency,
            to_currency=destination_currency,
            amount=amount,
            date=request.query_params.get('date') or None,
        )
        try:
            result = get_resolver().convert(conversion)
        except RateServiceError as e:
            logger.info("Conversion %s->%s failed: %s", source_currency, destination_currency, e)
            return error_response("conversion_failed", str(e))

        return Response(result.as_dict(), status=status.HTTP_200_OK)


class LatestRatesView(APIView):
    """
    GET /api/v1/latest?base=USD
    Rates of every other supported currency against ``base`` (USD by default).
    """

    def get(self, request):
        base_currency = _currency_param(request, 'base', 'USD')
        try:
            snapshot = get_resolver().get_latest_rates(base_currency)
        except RateServiceError as e:
            return error_response("invalid_currency", str(e))

        return Response(snapshot.as_dict(), status=status.HTTP_200_OK)


class HistoricalRatesView(APIView):
    """GET /api/v1/historical?from=USD&to=INR&start_date=2025-08-01&end_date=2025-08-07"""

    def get(self, request):
        source_currency = _currency_param(request, 'from')
        destination_currency = _currency_param(request, 'to')
        start_date = request.query_params.get('start_date')
        end_date = request.query_params.get('end_date')
        if not all([source_currency, destination_currency, start_date, end_date]):
            return error_response(
                "missing_parameters", "from, to, start_date, and end_date are required"
            )

        try:
            series = get_resolver().get_historical_rates(
                source_currency, destination_currency, start_date, end_date
            )
        except RateServiceError as e:
            logger.info("Historical rates %s->%s failed: %s", source_currency, destination_currency, e)
            return error_response("fetch_failed", str(e))

        return Response(series.as_dict(), status=status.HTTP_200_OK)


class CurrenciesView(APIView):
    """GET /api/v1/currencies"""

    def get(self, request):
        currencies = get_resolver().supported_currencies()
        return Response({"currencies": currencies, "count": len(currencies)}, status=status.HTTP_200_OK)
