# 📄 File: shelfkeeper/modules/subscription_management/presentation/api/v1/features.py
# 🧭 Purpose (Layman Explanation):
# Lets the app ask ahead of time whether the user's plan includes a feature, so it can
# grey out buttons and show why.
# 🧪 Purpose (Technical Summary):
# Advisory feature access endpoint: resolves the caller's plan and evaluates the entitlement
# decision table, always answering 200 with allowed/reason instead of 403.
# 🔗 Dependencies:
# FastAPI, FeatureGateService, presentation dependencies
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router (mounted under /api/v1/features)

from fastapi import APIRouter, Depends

from shelfkeeper.shared.core.dependencies import CurrentUser, get_current_user

from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import FeatureAccessDTO
from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.services.feature_gate_service import FeatureGateService
from shelfkeeper.modules.subscription_management.presentation.api.schemas.subscription_schemas import (
    FeatureAccessResponse,
)
from shelfkeeper.modules.subscription_management.presentation.dependencies import (
    get_feature_gate_service,
    raise_for_result,
)

features_router = APIRouter()


@features_router.get(
    "/{feature}/access",
    response_model=FeatureAccessResponse,
    summary="Check feature access",
    description="Whether the caller's plan grants a feature, with a display-ready reason when it does not.",
)
async def get_feature_access(
    feature: FeatureType,
    current_user: CurrentUser = Depends(get_current_user),
    feature_gate: FeatureGateService = Depends(get_feature_gate_service),
) -> FeatureAccessResponse:
    user_id = current_user.user_uuid
    plan = raise_for_result(await feature_gate.resolve_plan(user_id))
    decision = await feature_gate.check(user_id, plan, feature)

    return FeatureAccessResponse.from_dto(
        FeatureAccessDTO(
            feature=feature,
            plan=plan,
            allowed=decision.is_success,
            reason=FeatureGateService.denial_reason(decision),
        )
    )
