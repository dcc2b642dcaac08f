"""
Catalog listing tests.

Verifies:
- Page/size arithmetic and the DataTables envelope
- Unknown or hostile sort names fall back to the default column
- Search is case-insensitive, escapes LIKE wildcards and narrows recordsFiltered
- DataTables column-index convention on the sales list
"""

from pharmacy.models import Client


class TestPagination:

    def test_page_two_of_twenty_five(self, client, make_client):
        created = [make_client() for _ in range(25)]

        resp = client.get("/api/clientes?page=2&size=10&sortBy=id&order=ASC&draw=3")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["draw"] == 3
        assert body["recordsTotal"] == 25
        assert body["recordsFiltered"] == 25
        assert [row["id"] for row in body["data"]] == [c.id for c in created[10:20]]

    def test_invalid_page_and_size_fall_back(self, client, make_client):
        for _ in range(12):
            make_client()

        resp = client.get("/api/clientes?page=abc&size=-4")

        body = resp.get_json()
        assert len(body["data"]) == 10
        assert body["draw"] == 0

    def test_size_is_capped(self, app, client, make_client):
        for _ in range(5):
            make_client()
        app.config["LISTING_MAX_PAGE_SIZE"] = 3
        try:
            resp = client.get("/api/clientes?size=500")
        finally:
            app.config["LISTING_MAX_PAGE_SIZE"] = 1000

        assert len(resp.get_json()["data"]) == 3


class TestSorting:

    def test_clients_default_descending(self, client, make_client):
        first = make_client()
        last = make_client()

        rows = client.get("/api/clientes").get_json()["data"]

        assert [r["id"] for r in rows] == [last.id, first.id]

    def test_anything_but_asc_is_desc(self, client, make_client):
        first = make_client()
        last = make_client()

        rows = client.get("/api/clientes?order=sideways").get_json()["data"]

        assert [r["id"] for r in rows] == [last.id, first.id]

    def test_injection_falls_back_to_default_column(self, client, db_session, make_client):
        make_client(names="Zeta")
        make_client(names="Alfa")

        resp = client.get("/api/clientes?sortBy=id%3BDROP%20TABLE%20clients&order=ASC")

        assert resp.status_code == 200
        rows = resp.get_json()["data"]
        assert [r["names"] for r in rows] == ["Zeta", "Alfa"]
        assert db_session.query(Client).count() == 2

    def test_sort_by_allowed_column(self, client, make_client):
        make_client(names="Beta")
        make_client(names="Alfa")
        make_client(names="Gamma")

        rows = client.get("/api/clientes?sortBy=names&order=ASC").get_json()["data"]

        assert [r["names"] for r in rows] == ["Alfa", "Beta", "Gamma"]

    def test_users_default_ascending(self, client, make_user):
        first = make_user()
        second = make_user()

        rows = client.get("/users").get_json()["data"]

        assert [r["id"] for r in rows] == [first.id, second.id]


class TestSearch:

    def test_case_insensitive_and_filtered_count(self, client, make_client):
        make_client(names="Maria Lopez")
        make_client(names="Jose Perez")
        make_client(names="MARIANA Ruiz")

        body = client.get("/api/clientes?search=maria").get_json()

        assert body["recordsTotal"] == 3
        assert body["recordsFiltered"] == 2
        assert {r["names"] for r in body["data"]} == {"Maria Lopez", "MARIANA Ruiz"}

    def test_wildcards_are_literal(self, client, make_client):
        make_client(names="100% natural")
        make_client(names="1000 naturales")

        body = client.get("/api/clientes?search=0%25").get_json()

        assert [r["names"] for r in body["data"]] == ["100% natural"]

    def test_users_search_by_id_text(self, client, make_user):
        user = make_user()
        make_user()

        body = client.get(f"/users?search={user.username}").get_json()

        assert body["recordsFiltered"] == 1
        assert body["data"][0]["rol"] is not None
        assert "password" not in body["data"][0]
        assert "password_hash" not in body["data"][0]


class TestSalesDataTables:

    def test_column_index_and_items(self, client, make_client, make_product, make_sale):
        buyer_a = make_client(names="Ana", email="ana@mail.test")
        buyer_b = make_client(names="Bruno", email="bruno@mail.test")
        p1, p2 = make_product(), make_product()

        small = make_sale(buyer_a, [(p1, 1, "2.00")])
        big = make_sale(buyer_b, [(p1, 2, "5.00"), (p2, 1, "30.00")])

        # column 8 = total
        body = client.get(
            "/api/ventas?draw=7&start=0&length=10&order[0][column]=8&order[0][dir]=asc"
        ).get_json()

        assert body["draw"] == 7
        assert body["recordsTotal"] == 2
        assert [r["id"] for r in body["data"]] == [small.id, big.id]
        assert body["data"][1]["items"] == 2
        assert body["data"][1]["client"] == "Bruno"
        assert body["data"][1]["total"] == 40.0

    def test_search_value_and_start_offset(self, client, make_client, make_product, make_sale):
        product = make_product()
        ana = make_client(names="Ana", address="Calle Sol 1")
        other = make_client(names="Otro", address="Av. Luna")
        make_sale(ana, [(product, 1, "1.00")])
        make_sale(other, [(product, 1, "1.00")])
        make_sale(ana, [(product, 1, "1.00")])

        body = client.get("/api/ventas?search[value]=sol&start=1&length=5").get_json()

        assert body["recordsTotal"] == 3
        assert body["recordsFiltered"] == 2
        assert len(body["data"]) == 1

    def test_out_of_range_column_uses_default(self, client, make_client, make_product, make_sale):
        product = make_product()
        buyer = make_client()
        first = make_sale(buyer, [(product, 1, "1.00")])
        second = make_sale(buyer, [(product, 1, "1.00")])

        body = client.get("/api/ventas?order[0][column]=99").get_json()

        assert [r["id"] for r in body["data"]] == [second.id, first.id]
