from django.urls import path
from .views import ConvertView, LatestRatesView, HistoricalRatesView, CurrenciesView

urlpatterns = [
    path('convert', ConvertView.as_view(), name='convert'),
    path('latest', LatestRatesView.as_view(), name='latest-rates'),
    path('historical', HistoricalRatesView.as_view(), name='historical-rates'),
    path('currencies', CurrenciesView.as_view(), name='currencies'),
]
