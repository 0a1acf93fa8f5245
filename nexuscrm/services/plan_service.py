from typing import List, Optional
from nexuscrm.config.constants import PLAN_CATALOG
from nexuscrm.schemas.plan import Plan


def list_plans() -> List[Plan]:
    return [Plan(**entry) for entry in PLAN_CATALOG]


def current_plan() -> Optional[Plan]:
    return next((plan for plan in list_plans() if plan.is_current), None)
