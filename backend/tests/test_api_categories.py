"""Tests for categories API endpoints."""

from budgetbook.models.category import Category, Subcategory
from budgetbook.models.rule import TransactionRule


class TestCategoriesAPI:
    """Category CRUD and deletion guards."""

    def test_list_categories(self, auth_client, ledger):
        response = auth_client.get("/api/categories")
        assert response.status_code == 200
        data = response.json()["data"]
        assert [c["name"] for c in data][:4] == ["Entertainment", "Food", "Income", "Shopping"]
        food = next(c for c in data if c["id"] == ledger.food.id)
        assert [s["name"] for s in food["subcategories"]] == ["Groceries", "Restaurants"]

    def test_create_category(self, auth_client, db_session, ledger):
        response = auth_client.post("/api/categories", json={"name": "  Travel "})
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Travel"
        assert data["subcategories"] == []
        assert db_session.get(Category, data["id"]).user_id == ledger.user.id

    def test_blank_name_is_rejected(self, auth_client, ledger):
        response = auth_client.post("/api/categories", json={"name": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "Category name is required"

    def test_rename_category(self, auth_client, ledger):
        response = auth_client.put(f"/api/categories/{ledger.shopping.id}", json={"name": "Shops"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Shops"

    def test_delete_category_with_subcategories_fails(self, auth_client, db_session, ledger):
        response = auth_client.delete(f"/api/categories/{ledger.food.id}")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete category with subcategories"
        db_session.expire_all()
        assert db_session.get(Category, ledger.food.id) is not None

    def test_delete_category_with_transactions_fails(self, auth_client, db_session, ledger):
        response = auth_client.delete(f"/api/categories/{ledger.shopping.id}")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete category with associated transactions"

    def test_delete_unused_category_takes_its_rules(self, auth_client, db_session, ledger):
        category = Category(name="Pets", user_id=ledger.user.id)
        db_session.add(category)
        db_session.flush()
        db_session.add(TransactionRule(pattern="vet", category_id=category.id, user_id=ledger.user.id))
        db_session.commit()
        category_id = category.id

        response = auth_client.delete(f"/api/categories/{category_id}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None}
        db_session.expire_all()
        assert db_session.get(Category, category_id) is None
        assert db_session.query(TransactionRule).filter_by(category_id=category_id).count() == 0

    def test_unknown_category(self, auth_client, ledger):
        response = auth_client.put("/api/categories/99999", json={"name": "Nope"})
        assert response.status_code == 404
        assert response.json()["error"] == "Category not found"

    def test_other_users_category_is_not_found(self, auth_client, db_session, ledger, other_user):
        foreign = Category(name="Theirs", user_id=other_user.id)
        db_session.add(foreign)
        db_session.commit()
        response = auth_client.delete(f"/api/categories/{foreign.id}")
        assert response.status_code == 404


class TestSubcategoriesAPI:

    def test_create_subcategory(self, auth_client, ledger):
        response = auth_client.post(
            f"/api/categories/{ledger.shopping.id}/subcategories", json={"name": "Books"}
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["category_id"] == ledger.shopping.id
        assert data["name"] == "Books"

    def test_rename_subcategory(self, auth_client, ledger):
        response = auth_client.put(f"/api/subcategories/{ledger.restaurants.id}", json={"name": "Dining"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Dining"

    def test_delete_subcategory_in_use_fails(self, auth_client, ledger):
        response = auth_client.delete(f"/api/subcategories/{ledger.groceries.id}")
        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete subcategory with associated transactions"

    def test_delete_subcategory_detaches_rules(self, auth_client, db_session, ledger):
        rule = TransactionRule(
            pattern="pizza",
            category_id=ledger.food.id,
            subcategory_id=ledger.restaurants.id,
            user_id=ledger.user.id,
        )
        db_session.add(rule)
        db_session.commit()
        rule_id = rule.id
        subcategory_id = ledger.restaurants.id

        response = auth_client.delete(f"/api/subcategories/{subcategory_id}")
        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Subcategory, subcategory_id) is None
        rule = db_session.get(TransactionRule, rule_id)
        assert rule.category_id == ledger.food.id
        assert rule.subcategory_id is None

    def test_category_can_be_deleted_once_empty(self, auth_client, ledger):
        category_id = auth_client.post("/api/categories", json={"name": "Garden"}).json()["data"]["id"]
        sub_id = auth_client.post(
            f"/api/categories/{category_id}/subcategories", json={"name": "Plants"}
        ).json()["data"]["id"]

        assert auth_client.delete(f"/api/categories/{category_id}").status_code == 400
        assert auth_client.delete(f"/api/subcategories/{sub_id}").status_code == 200
        assert auth_client.delete(f"/api/categories/{category_id}").status_code == 200


def test_category_rules_view(auth_client, db_session, ledger):
    db_session.add_all([
        TransactionRule(pattern="uber", category_id=ledger.shopping.id, user_id=ledger.user.id),
        TransactionRule(pattern="amazon", category_id=ledger.shopping.id, user_id=ledger.user.id),
    ])
    db_session.commit()

    response = auth_client.get("/api/categories/rules")
    assert response.status_code == 200
    rows = response.json()["data"]
    assert [r["pattern"] for r in rows] == ["amazon", "uber"]
    assert rows[0]["category_name"] == "Shopping"
