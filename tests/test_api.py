"""REST/WebSocket API 테스트.

API tests — status codes, the error body shape, and an end-to-end pass
through the shift, sale, alert and rewards endpoints.
"""

from fastapi.testclient import TestClient
from httpx import AsyncClient

from misekitchen.main import app
from tests.conftest import CHEF_PASSWORD, CHEF_RUT

API = "/api/v1"


class TestHealth:
    """상태 확인."""

    async def test_health(self, client: AsyncClient):
        """헬스 체크 200."""
        res = await client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}


class TestIngredientsApi:
    """재료 엔드포인트."""

    async def test_create_and_list(self, client: AsyncClient):
        """재료 생성 후 목록 조회."""
        res = await client.post(f"{API}/ingredients", json={
            "name": "Albahaca",
            "unit": "g",
            "category": "verduras",
            "total_quantity": 200,
        })
        assert res.status_code == 201
        assert res.json()["current_percentage"] == 100

        res = await client.get(f"{API}/ingredients", params={"category": "verduras"})
        assert [i["name"] for i in res.json()] == ["Albahaca"]

    async def test_duplicate_name_error_body(self, client: AsyncClient, ingredients):
        """중복 이름은 409와 kind/code/message 본문."""
        res = await client.post(f"{API}/ingredients", json={"name": "Mozzarella", "unit": "g", "category": "quesos"})
        assert res.status_code == 409
        detail = res.json()["detail"]
        assert detail["kind"] == "conflict"
        assert detail["code"] == "ingredient_exists"
        assert detail["message"]

    async def test_restock(self, client: AsyncClient, ingredients):
        """재입고 — 수량 추가."""
        res = await client.post(
            f"{API}/ingredients/{ingredients['mozzarella'].id}/restock",
            json={"added_quantity": 20, "authorized_by": "María"},
        )
        assert res.status_code == 200
        assert res.json()["ingredient"]["current_percentage"] == 100

        res = await client.get(f"{API}/ingredients/{ingredients['mozzarella'].id}/restocks")
        assert len(res.json()) == 1

    async def test_restock_bad_credentials(self, client: AsyncClient, ingredients, chef):
        """잘못된 자격 증명은 401."""
        res = await client.post(
            f"{API}/ingredients/{ingredients['masa'].id}/restock",
            json={"new_percentage": 80, "authorized_rut": CHEF_RUT, "authorized_password": "nope"},
        )
        assert res.status_code == 401

    async def test_unknown_ingredient(self, client: AsyncClient):
        """없는 재료는 404."""
        res = await client.get(f"{API}/ingredients/00000000-0000-0000-0000-000000000000")
        assert res.status_code == 404
        assert res.json()["detail"]["code"] == "ingredient_not_found"


class TestShiftFlow:
    """교대 → 판매 → 서명 → 마감 흐름."""

    async def test_full_flow(self, client: AsyncClient, ingredients, chef):
        """교대 시작부터 보상 계산까지."""
        res = await client.post(f"{API}/recipes", json={
            "name": "Napolitana",
            "type": "pizza",
            "size": "M",
            "ingredients": [
                {"ingredient_id": str(ingredients["masa"].id), "quantity": 1},
                {"ingredient_id": str(ingredients["tomate"].id), "quantity": 80},
                {"ingredient_id": str(ingredients["mozzarella"].id), "quantity": 5},
            ],
        })
        assert res.status_code == 201
        recipe_id = res.json()["id"]

        res = await client.post(f"{API}/shifts", json={
            "date": "2026-10-20",
            "type": "PM",
            "employee_name": "Camila Rojas",
            "mise_en_place": [
                {"ingredient_id": str(ingredients["masa"].id), "quantity": 20},
                {"ingredient_id": str(ingredients["tomate"].id), "quantity": 800},
                {"ingredient_id": str(ingredients["mozzarella"].id), "quantity": 50},
            ],
        })
        assert res.status_code == 201
        shift = res.json()
        assert len(shift["tasks"]) == 22

        res = await client.post(f"{API}/shifts", json={"date": "2026-10-20", "type": "AM", "employee_name": "Otro"})
        assert res.status_code == 409

        res = await client.post(f"{API}/sales", json={"recipe_id": recipe_id, "quantity": 1})
        assert res.status_code == 201
        assert res.json()["sale"]["shift_id"] == shift["id"]

        res = await client.get(f"{API}/shifts/current/mise-en-place")
        mise = {m["ingredient_name"]: m for m in res.json()["mise_en_place"]}
        assert mise["Salsa de tomate"]["current_quantity"] == 720
        assert mise["Salsa de tomate"]["status"] == "green"

        for task in shift["tasks"]:
            res = await client.put(f"{API}/shifts/{shift['id']}/tasks/{task['id']}", json={"completed": True})
            assert res.status_code == 200

        res = await client.post(
            f"{API}/shifts/{shift['id']}/sign-checklist", json={"rut": CHEF_RUT, "password": CHEF_PASSWORD},
        )
        assert res.status_code == 200
        assert res.json()["completion"]["completion_percentage"] == 100

        res = await client.put(f"{API}/shifts/{shift['id']}/close", json={"closed_by": "Administrador"})
        assert res.status_code == 200
        report = res.json()["report"]
        assert report["total_sales"] == 1
        assert report["checklist_completion"]["completion_percentage"] == 100

        res = await client.get(f"{API}/shifts/current")
        assert res.status_code == 200
        assert res.json() is None

        res = await client.get(f"{API}/gamification/current-week")
        assert res.json()[0]["employee_name"] == "Camila Rojas"

        res = await client.post(f"{API}/gamification/calculate-rewards")
        assert res.status_code == 200
        assert res.json()["rewards"][0]["points_earned"] == 100

    async def test_mise_restock_and_validation(self, client: AsyncClient, ingredients, open_shift):
        """미장플라스 보충, 없는 레시피, 마감자 누락."""
        res = await client.put(
            f"{API}/shifts/current/mise-en-place/{ingredients['masa'].id}/restock", json={"quantity": 5},
        )
        assert res.status_code == 200
        assert res.json()["current_quantity"] == 15

        res = await client.post(f"{API}/sales", json={"recipe_id": "00000000-0000-0000-0000-000000000000", "quantity": 1})
        assert res.status_code == 404

        res = await client.put(f"{API}/shifts/{open_shift.id}/close", json={"closed_by": ""})
        assert res.status_code == 400
        assert res.json()["detail"]["code"] == "missing_closed_by"

    async def test_sale_missing_ingredients(self, client: AsyncClient, recipe, open_shift):
        """재고 부족 판매는 400과 재료 이름 목록."""
        res = await client.post(f"{API}/sales", json={"recipe_id": str(recipe.id), "quantity": 5})
        assert res.status_code == 400
        detail = res.json()["detail"]
        assert detail["code"] == "missing_ingredients"
        assert "Mozzarella" in detail["names"]


class TestAlertsApi:
    """알림 엔드포인트."""

    async def test_suggestion_count_and_resolve(self, client: AsyncClient):
        """제안 생성, 미해결 수, 해결."""
        res = await client.post(f"{API}/alerts/suggestion", json={"message": "Revisar la cámara de frío"})
        assert res.status_code == 201
        alert_id = res.json()["id"]

        res = await client.get(f"{API}/alerts/count")
        assert res.json() == {"count": 1}

        res = await client.put(f"{API}/alerts/{alert_id}/resolve")
        assert res.status_code == 200
        assert res.json()["resolved"] is True

        res = await client.get(f"{API}/alerts/count")
        assert res.json() == {"count": 0}


class TestEventStream:
    """이벤트 WebSocket."""

    def test_ping_pong(self):
        """ping에 pong으로 응답."""
        client = TestClient(app)
        with client.websocket_connect("/ws/events") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"
