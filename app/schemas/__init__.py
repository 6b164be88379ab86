"""
app.schemas
~~~~~~~~~~~
Pydantic schemas: REST payloads, inbound live events and outbound notifications.
"""
from app.schemas.api_response import ApiResponse
from app.schemas.live_interactions import (
    ConnectRequest,
    RelayStatusData,
    UserStatsData,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
