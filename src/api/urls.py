"""Main API URL router for /api/v1/."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from api.v1 import expense_views as expense_api_views
from api.v1 import quarter_views as quarter_api_views

router = DefaultRouter()
router.register(r'quarters', quarter_api_views.QuarterViewSet, basename='quarter')
router.register(r'expenses', expense_api_views.ExpenseViewSet, basename='expense')


app_name = 'api'
urlpatterns = [
    path('', include(router.urls)),

    # Dashboard
    path('dashboard/stats/', quarter_api_views.DashboardStatsView.as_view(), name='dashboard-stats'),
    path('dashboard/quick-stats/', quarter_api_views.QuickStatsView.as_view(), name='dashboard-quick-stats'),
    path('dashboard/activities/', quarter_api_views.RecentActivityView.as_view(), name='dashboard-activities'),
]
