import io

from openpyxl import load_workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PRODUCT_HEADER = ["Produto", "Tipo", "Custo", "Taxa de Lucro", "Valor de Venda", "Valor Concorrente", "Nome Concorrente"]


def _upload(api, entity, content):
    return api.post(f"/imports/{entity}/preview", files={"file": ("dados.xlsx", content, XLSX)})


class TestImportLayout:
    def test_columns(self, api):
        columns = api.get("/imports/products/columns").json()
        assert [c["label"] for c in columns] == PRODUCT_HEADER
        assert [c["required"] for c in columns] == [True] * 5 + [False] * 2

    def test_template(self, api):
        response = api.get("/imports/product-types/template")
        assert response.status_code == 200
        assert 'filename="modelo_tipos_produto.xlsx"' in response.headers["content-disposition"]
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert [c.value for c in sheet[1]] == ["Nome"]

    def test_unknown_entity(self, api):
        assert api.get("/imports/suppliers/columns").status_code == 404


class TestProductTypeImport:
    def test_preview_then_confirm(self, api, xlsx, import_sessions):
        preview = _upload(api, "product-types", xlsx([["Nome"], ["Caneta"], [None], ["Lápis"]]))
        assert preview.status_code == 200, preview.text
        body = preview.json()
        assert body["state"] == "PREVIEW_READY"
        assert body["total"] == 2
        assert body["rows"] == [{"name": "Caneta"}, {"name": "Lápis"}]

        # Nothing written before confirm
        assert api.get("/product-types").json() == []

        result = api.post(f"/imports/sessions/{body['session_id']}/confirm")
        assert result.status_code == 200, result.text
        assert result.json() == {"imported": 2, "message": "2 item(s) imported successfully"}
        assert len(import_sessions) == 0
        assert {t["name"] for t in api.get("/product-types").json()} == {"Caneta", "Lápis"}

    def test_preview_is_capped(self, api, xlsx):
        rows = [["Nome"]] + [[f"Tipo {i}"] for i in range(15)]
        body = _upload(api, "product-types", xlsx(rows)).json()
        assert body["total"] == 15
        assert len(body["rows"]) == 10

    def test_invalid_file_creates_no_session(self, api, xlsx, import_sessions):
        response = _upload(api, "product-types", xlsx([["Tipo"], ["Caneta"]]))
        assert response.status_code == 400
        assert response.json()["detail"] == "Required columns not found: Nome"
        assert len(import_sessions) == 0

    def test_cancel(self, api, xlsx, import_sessions):
        body = _upload(api, "product-types", xlsx([["Nome"], ["Caneta"]])).json()
        assert api.delete(f"/imports/sessions/{body['session_id']}").status_code == 200
        assert api.post(f"/imports/sessions/{body['session_id']}/confirm").status_code == 404
        assert api.get("/product-types").json() == []


class TestProductImport:
    def test_products_resolve_type_by_name(self, api, xlsx):
        api.post("/product-types", json={"name": "Papelaria"})
        content = xlsx([
            PRODUCT_HEADER,
            ["Caneta", "papelaria", "1,5", 100, 3, "2,9", "Loja X"],
            ["Lápis", "Papelaria", 1, 50, 1.5, None, None],
        ])
        body = _upload(api, "products", content).json()
        result = api.post(f"/imports/sessions/{body['session_id']}/confirm")
        assert result.json()["imported"] == 2

        products = {p["name"]: p for p in api.get("/products").json()}
        assert products["Caneta"]["type_name"] == "Papelaria"
        assert products["Caneta"]["cost_price"] == 1.5
        assert products["Caneta"]["quantity"] == 0
        assert products["Caneta"]["is_kit"] is False
        assert [(c["competitor_name"], c["price"]) for c in products["Caneta"]["competitor_prices"]] == [("Loja X", 2.9)]
        assert products["Lápis"]["competitor_prices"] == []

    def test_row_errors_are_listed(self, api, xlsx):
        content = xlsx([
            PRODUCT_HEADER,
            ["Caneta", None, 1, 10, None],
            ["Lápis", "Papelaria", 1, 10, 1.1],
        ])
        response = _upload(api, "products", content)
        assert response.status_code == 400
        assert response.json()["detail"] == "Required fields are empty: Row 2: missing Tipo, Valor de Venda"

    def test_needs_a_product_type(self, api, xlsx):
        content = xlsx([PRODUCT_HEADER, ["Caneta", "Papelaria", 1, 10, 1.1]])
        body = _upload(api, "products", content).json()
        response = api.post(f"/imports/sessions/{body['session_id']}/confirm")
        assert response.status_code == 400
        assert response.json()["detail"] == "Create at least one product type before importing products."

    def test_unknown_type_aborts_and_requires_new_upload(self, api, xlsx):
        api.post("/product-types", json={"name": "Papelaria"})
        content = xlsx([
            PRODUCT_HEADER,
            ["Caneta", "Papelaria", 1, 10, 1.1],
            ["Teclado", "Informática", 50, 20, 60],
        ])
        body = _upload(api, "products", content).json()

        response = api.post(f"/imports/sessions/{body['session_id']}/confirm")
        assert response.status_code == 400
        assert response.json()["detail"] == 'Type "Informática" not found. Check that the type exists.'

        # Earlier records stay; the session is back to PARSED with nothing to confirm
        assert [p["name"] for p in api.get("/products").json()] == ["Caneta"]
        session = api.get(f"/imports/sessions/{body['session_id']}").json()
        assert session["state"] == "PARSED"
        assert session["rows"] == []
        assert api.post(f"/imports/sessions/{body['session_id']}/confirm").status_code == 409

        failures = api.get("/logs", params={"action": "IMPORT_COMMIT", "status": "FAIL"}).json()
        assert failures["total"] == 1

    def test_type_match_folds_accented_capitals(self, api, xlsx):
        api.post("/product-types", json={"name": "ESCRITÓRIO"})
        content = xlsx([PRODUCT_HEADER, ["Grampeador", "escritório", 8, 50, 12]])
        body = _upload(api, "products", content).json()

        result = api.post(f"/imports/sessions/{body['session_id']}/confirm")
        assert result.status_code == 200, result.text
        [product] = api.get("/products").json()
        assert product["type_name"] == "ESCRITÓRIO"


class TestImportSessionOwnership:
    def _other_user_headers(self, test_app):
        from fastapi.testclient import TestClient

        with TestClient(test_app) as anon:
            anon.post("/register", json={"email": "clerk@inventory.io", "password": "clerk123"})
            token = anon.post("/login", json={"email": "clerk@inventory.io", "password": "clerk123"}).json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    def test_sessions_are_private_to_uploader(self, api, test_app, xlsx):
        body = _upload(api, "product-types", xlsx([["Nome"], ["Caneta"]])).json()
        session_url = f"/imports/sessions/{body['session_id']}"
        other = self._other_user_headers(test_app)

        assert api.get(session_url, headers=other).status_code == 404
        assert api.post(f"{session_url}/confirm", headers=other).status_code == 404
        assert api.delete(session_url, headers=other).status_code == 404

        # The owner still sees and confirms it
        assert api.post(f"{session_url}/confirm").json()["imported"] == 1
