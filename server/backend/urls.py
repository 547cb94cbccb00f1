from django.urls import include, path
from rates.views import ConvertView, HealthView

urlpatterns = [
    path('health', HealthView.as_view(), name='health'),
    path('api/v1/', include('rates.urls')),
    path('convert', ConvertView.as_view(), name='convert-root'),
]
