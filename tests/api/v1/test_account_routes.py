from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException

from app.core.auth import get_current_user
from app.main import app
from app.schemas.history import ActivitySummary, HistoryResponse
from app.schemas.home import HomeResponse
from app.schemas.promotion import PromotionListResponse, RedeemResponse
from app.schemas.user import ProfileResponse, ProfileStats, UserResponse


@pytest.fixture
def authed(client, user):
    app.dependency_overrides[get_current_user] = lambda: user
    yield client
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to EcoBoleta API"}


def test_get_profile(authed, user):
    profile = ProfileResponse(
        user=UserResponse.from_user(user),
        stats=ProfileStats(receipt_count=3, green_receipt_count=2, co2_total=30.5, co2_average=10.17),
    )
    with patch("app.api.v1.endpoints.profile.ProfileService.get_profile", new_callable=AsyncMock) as mock_get:
        mock_get.return_value = profile
        response = authed.get("/api/v1/profile")

    assert response.status_code == 200
    assert response.json()["stats"]["green_receipt_count"] == 2
    mock_get.assert_awaited_once_with(str(user.id))


def test_update_profile_validation(authed):
    response = authed.patch("/api/v1/profile", json={"first_name": "Lu"})
    assert response.status_code == 422


def test_update_profile(authed, user):
    with patch("app.api.v1.endpoints.profile.ProfileService.update_profile", new_callable=AsyncMock) as mock_update:
        mock_update.return_value = UserResponse.from_user(user)
        response = authed.patch("/api/v1/profile", json={"last_name": "Mamani"})

    assert response.status_code == 200
    assert mock_update.call_args.args[1].last_name == "Mamani"


def test_history(authed):
    history = HistoryResponse(
        summary=ActivitySummary(receipt_count=0, green_count=0, yellow_count=0, red_count=0,
                                co2_total=0.0, co2_average=0.0),
        purchases=[],
    )
    with patch("app.api.v1.endpoints.history.HistoryService.get_history", new_callable=AsyncMock, return_value=history):
        response = authed.get("/api/v1/history")

    assert response.status_code == 200
    assert response.json()["purchases"] == []


def test_home(authed):
    home = HomeResponse(green_points=4, co2_accumulated=30.5)
    with patch("app.api.v1.endpoints.home.HomeService.get_home", new_callable=AsyncMock, return_value=home):
        response = authed.get("/api/v1/home")

    assert response.json()["green_points"] == 4
    assert response.json()["last_receipt"] is None


def test_list_promotions_mine(authed, user):
    with patch("app.api.v1.endpoints.promotions.PromotionService.list_promotions", new_callable=AsyncMock) as mock_list:
        mock_list.return_value = PromotionListResponse(user_points=4, promotions=[])
        response = authed.get("/api/v1/promotions?mine=true")

    assert response.json()["user_points"] == 4
    mock_list.assert_awaited_once_with(str(user.id), mine=True)


def test_redeem_with_description(authed, user):
    redeemed = RedeemResponse(
        promotion_id="507f1f77bcf86cd799439013", points_spent=3, remaining_points=1,
        used_at=datetime(2025, 11, 22, tzinfo=timezone.utc),
    )
    with patch("app.api.v1.endpoints.promotions.PromotionService.redeem", new_callable=AsyncMock) as mock_redeem:
        mock_redeem.return_value = redeemed
        response = authed.post(
            "/api/v1/promotions/507f1f77bcf86cd799439013/redeem",
            json={"description": "Para el mercado"},
        )

    assert response.status_code == 200
    assert response.json()["remaining_points"] == 1
    mock_redeem.assert_awaited_once_with("507f1f77bcf86cd799439013", str(user.id), "Para el mercado")


def test_redeem_without_body(authed, user):
    with patch("app.api.v1.endpoints.promotions.PromotionService.redeem", new_callable=AsyncMock) as mock_redeem:
        mock_redeem.side_effect = HTTPException(status_code=400, detail="Insufficient points. You need 3 points and have 2")
        response = authed.post("/api/v1/promotions/507f1f77bcf86cd799439013/redeem")

    assert response.status_code == 400
    mock_redeem.assert_awaited_once_with("507f1f77bcf86cd799439013", str(user.id), None)
