from typing import List

from ..models.schemas import ActionGroup, ChartSlice, DashboardView, RoomAnalysis

HIGH_CLUTTER_THRESHOLD = 70
MEDIUM_CLUTTER_THRESHOLD = 40

CHART_COLORS = ["#10b981", "#f59e0b", "#ef4444", "#6366f1"]

# Порядок панелей на дашборде
ACTION_GROUP_TITLES = [
    ("Discard", "Убрать / Выбросить"),
    ("Organize", "Организовать"),
    ("Buy", "Купить / Добавить"),
]


def clutter_tier(level: int) -> str:
    if level > HIGH_CLUTTER_THRESHOLD:
        return "high"
    if level > MEDIUM_CLUTTER_THRESHOLD:
        return "medium"
    return "low"


def group_action_items(analysis: RoomAnalysis) -> List[ActionGroup]:
    """Панели по категориям; пустые панели не показываются"""
    groups = []
    for category, title in ACTION_GROUP_TITLES:
        items = [item for item in analysis.action_items if item.category == category]
        if items:
            groups.append(ActionGroup(category=category, title=title, items=items))
    return groups


def build_dashboard(analysis: RoomAnalysis) -> DashboardView:
    groups = group_action_items(analysis)
    chart = [
        ChartSlice(name=entry.name, value=entry.value, color=CHART_COLORS[index % len(CHART_COLORS)])
        for index, entry in enumerate(analysis.space_utilization)
    ]
    return DashboardView(
        room_type=analysis.room_type,
        summary=analysis.summary,
        clutter_level=analysis.clutter_level,
        clutter_tier=clutter_tier(analysis.clutter_level),
        action_groups=groups,
        is_spotless=not groups,
        chart=chart,
        aesthetic_suggestions=analysis.aesthetic_suggestions,
    )
