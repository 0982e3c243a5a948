from django.urls import path

from .views import (
    OfferingCapacityView,
    OfferingListView,
    PackDetailView,
    PackListView,
    PackSelectionsExportView,
    PackSelectionsView,
    PackStatusView,
    SelectionDecisionView,
    SelectionReopenView,
    StatementView,
    StudentSelectionView,
)

app_name = "electives"

urlpatterns = [
    path("packs/", PackListView.as_view(), name="pack_list"),
    path("packs/<int:pack_id>/", PackDetailView.as_view(), name="pack_detail"),
    path("packs/<int:pack_id>/offerings/", OfferingListView.as_view(), name="offering_list"),
    path("packs/<int:pack_id>/selection/", StudentSelectionView.as_view(), name="student_selection"),
    path("packs/<int:pack_id>/selection/statement/", StatementView.as_view(), name="selection_statement"),
    path("packs/<int:pack_id>/selections/", PackSelectionsView.as_view(), name="pack_selections"),
    path(
        "packs/<int:pack_id>/selections/export/",
        PackSelectionsExportView.as_view(),
        name="pack_selections_export",
    ),
    path("packs/<int:pack_id>/status/", PackStatusView.as_view(), name="pack_status"),
    path("selections/<int:selection_id>/decision/", SelectionDecisionView.as_view(), name="selection_decision"),
    path("selections/<int:selection_id>/reopen/", SelectionReopenView.as_view(), name="selection_reopen"),
    path("offerings/<int:offering_id>/capacity/", OfferingCapacityView.as_view(), name="offering_capacity"),
]
