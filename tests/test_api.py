import json

import pytest

from wingfinder.config import settings
from wingfinder.models import Location, LocationItem

ITEMS = [
    {
        "restaurantName": "Wing Stop",
        "neighborhood": "Downtown",
        "address": "1 Main St",
        "itemName": "Buffalo Wings",
        "type": "meat",
        "glutenFree": False,
        "allowMinors": True,
        "latitude": 37.77,
        "longitude": -122.41,
        "hours": [
            {"dayOfWeek": "Tue", "date": "Sep 30", "fullDate": "2025-09-30", "hours": "11 am–10 pm"},
            {"dayOfWeek": "Tue", "date": "Sep 30", "fullDate": "2025-09-30", "hours": "11 am–10 pm"},
        ],
    },
    {
        "restaurantName": "Wing Stop",
        "neighborhood": "Downtown",
        "address": "1 Main St",
        "itemName": "Cauliflower Wings",
        "type": "vegan, vegetarian",
        "glutenFree": True,
    },
    {
        "restaurantName": "Night Owl",
        "neighborhood": "Mission",
        "address": "9 Oak Ave",
        "itemName": "Late Wings",
        "allowDelivery": True,
        "hours": [
            {"dayOfWeek": "Tue", "date": "Sep 30", "fullDate": "2025-09-30", "hours": "11 pm–2 am"},
        ],
    },
]


@pytest.fixture
async def migrated(client, admin_headers):
    response = await client.post("/admin/migrate", json={"items": ITEMS}, headers=admin_headers)
    assert response.status_code == 201
    return response.json()


async def item_id(client, name: str) -> int:
    body = (await client.get("/locations")).json()
    for location in body["locations"]:
        for item in location["items"]:
            if item["item_name"] == name:
                return int(item["id"])
    raise AssertionError(f"{name} not listed")


# ── Health ───────────────────────────────────────────────────────────────────


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ── Admin ────────────────────────────────────────────────────────────────────


async def test_admin_requires_service_token(client):
    response = await client.post("/admin/migrate", json={"items": []}, headers={"X-Service-Token": "nope"})
    assert response.status_code == 401
    response = await client.delete("/admin/data")
    assert response.status_code == 422


async def test_migrate_creates_one_location_per_name(client, migrated):
    assert migrated["processed"] == 3
    assert migrated["locations_created"] == 2
    assert migrated["items_created"] == 3
    assert migrated["hours_created"] == 2

    assert (await client.get("/locations/count")).json() == {"count": 2}
    assert (await client.get("/locations/items/count")).json() == {"count": 3}


async def test_migrate_is_idempotent(client, migrated, admin_headers):
    again = await client.post("/admin/migrate", json={"items": ITEMS}, headers=admin_headers)
    assert again.json()["items_created"] == 0
    assert again.json()["locations_created"] == 0


async def test_clear_data(client, migrated, admin_headers):
    response = await client.delete("/admin/data", headers=admin_headers)
    assert response.json() == {
        "success": True, "ratings": 0, "favorites": 0, "items": 3, "hours": 2, "locations": 2,
    }
    assert (await client.get("/locations/count")).json() == {"count": 0}


async def test_clear_data_removes_ratings_with_their_items(client, migrated, admin_headers):
    wings = await item_id(client, "Buffalo Wings")
    await client.put(f"/ratings/items/{wings}", json={"rating": 5}, headers={"X-User-ID": "u1"})
    await client.post(f"/favorites/items/{wings}/toggle", headers={"X-User-ID": "u1"})

    cleared = (await client.delete("/admin/data", headers=admin_headers)).json()
    assert (cleared["ratings"], cleared["favorites"]) == (1, 1)

    new_place = {"restaurantName": "New Place", "address": "5 Pine St", "itemName": "Hot Wings"}
    await client.post("/admin/migrate", json={"items": [new_place]}, headers=admin_headers)

    body = (await client.get("/locations", headers={"X-User-ID": "u1"})).json()
    location = body["locations"][0]
    assert location["restaurant_name"] == "New Place"
    assert location["review_count"] == 0
    assert location["average_rating"] == 0.0
    assert location["items"][0]["is_favorited"] is False
    assert (await client.get("/ratings/me", headers={"X-User-ID": "u1"})).json() == []


async def test_update_item_image(client, migrated, admin_headers):
    wings = await item_id(client, "Buffalo Wings")
    response = await client.patch(
        f"/admin/items/{wings}/image",
        json={"image_url": "https://example.com/w.jpg", "image_path": "/images/w.jpg"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    missing = await client.patch(
        "/admin/items/999/image",
        json={"image_url": "x", "image_path": "y"},
        headers=admin_headers,
    )
    assert missing.status_code == 404


async def test_backfill_item_keys_reports_nothing_new(client, migrated, admin_headers):
    response = await client.post("/admin/item-keys", headers=admin_headers)
    assert response.json() == {"updated": 0, "duplicates": []}


# ── Locations ────────────────────────────────────────────────────────────────


async def test_list_locations(client, migrated):
    body = (await client.get("/locations")).json()

    assert body["total"] == 2
    # no limit means the whole filtered list
    assert body["limit"] == 2
    names = [loc["restaurant_name"] for loc in body["locations"]]
    assert names == ["Night Owl", "Wing Stop"]

    wing_stop = body["locations"][1]
    assert [i["item_name"] for i in wing_stop["items"]] == ["Buffalo Wings", "Cauliflower Wings"]
    assert wing_stop["items"][1]["types"] == ["vegan", "vegetarian"]
    assert wing_stop["items"][1]["type"] == "vegan"
    assert wing_stop["average_rating"] == 0.0
    assert wing_stop["review_count"] == 0
    assert isinstance(wing_stop["is_open_now"], bool)


async def test_list_locations_filters(client, migrated):
    body = (await client.get("/locations", params={"type": "vegetarian"})).json()
    assert [loc["restaurant_name"] for loc in body["locations"]] == ["Wing Stop"]

    body = (await client.get("/locations", params={"allow_delivery": "true"})).json()
    assert [loc["restaurant_name"] for loc in body["locations"]] == ["Night Owl"]

    body = (await client.get("/locations", params={"search_term": "CAULI"})).json()
    assert [loc["restaurant_name"] for loc in body["locations"]] == ["Wing Stop"]

    body = (await client.get("/locations", params={"gluten_free": "false"})).json()
    assert body["total"] == 2


async def test_list_locations_paginates(client, migrated):
    body = (await client.get("/locations", params={"limit": 1, "offset": 1})).json()
    assert body["total"] == 2
    assert [loc["restaurant_name"] for loc in body["locations"]] == ["Wing Stop"]


async def test_list_rejects_unknown_type(client):
    response = await client.get("/locations", params={"type": "tofu"})
    assert response.status_code == 422


async def test_favorites_only_requires_favorites(client, migrated):
    body = (await client.get("/locations", params={"favorites_only": "true"})).json()
    assert body["locations"] == []

    wings = await item_id(client, "Late Wings")
    await client.post(f"/favorites/items/{wings}/toggle", headers={"X-User-ID": "user-1"})

    body = (
        await client.get(
            "/locations", params={"favorites_only": "true"}, headers={"X-User-ID": "user-1"}
        )
    ).json()
    assert [loc["restaurant_name"] for loc in body["locations"]] == ["Night Owl"]
    assert body["locations"][0]["items"][0]["is_favorited"] is True


async def test_pins_and_neighborhoods(client, migrated):
    pins = (await client.get("/locations/pins")).json()
    assert [p["restaurant_name"] for p in pins] == ["Wing Stop"]
    assert (await client.get("/locations/neighborhoods")).json() == ["Downtown", "Mission"]


async def test_get_location_by_id(client, migrated):
    listing = (await client.get("/locations")).json()
    location_id = next(
        loc["id"] for loc in listing["locations"] if loc["restaurant_name"] == "Wing Stop"
    )

    body = (await client.get(f"/locations/{location_id}")).json()
    assert body["restaurant_name"] == "Wing Stop"
    assert len(body["items"]) == 2
    assert [h["full_date"] for h in body["hours"]] == ["2025-09-30"]

    assert (await client.get("/locations/9999")).status_code == 404


async def test_get_location_without_name(client, db):
    location = Location(restaurant_name="  ", address="7 Elm St", neighborhood="Castro")
    db.add(location)
    await db.flush()
    db.add(LocationItem(location_id=location.id, item_name="Mystery Wings", types=["meat"]))
    await db.commit()

    response = await client.get(f"/locations/{location.id}")
    assert response.status_code == 200
    assert response.json()["address"] == "7 Elm St"
    assert response.json()["review_count"] == 0


async def test_snapshot_items_are_merged(client, migrated, tmp_path, monkeypatch):
    snapshot = tmp_path / "items.json"
    snapshot.write_text(
        json.dumps(
            [
                ITEMS[0],
                {"restaurantName": "Snack Shack", "itemName": "Honey Wings", "address": "3 Elm"},
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(settings, "snapshot_path", str(snapshot))

    body = (await client.get("/locations")).json()
    assert [loc["restaurant_name"] for loc in body["locations"]] == [
        "Night Owl", "Snack Shack", "Wing Stop",
    ]
    shack = body["locations"][1]
    assert shack["items"][0]["id"].startswith("temp-")
    wing_stop = body["locations"][2]
    assert len(wing_stop["items"]) == 2


# ── Ratings & enrichment ─────────────────────────────────────────────────────


async def test_rating_requires_identity(client, migrated):
    wings = await item_id(client, "Buffalo Wings")
    response = await client.put(f"/ratings/items/{wings}", json={"rating": 4})
    assert response.status_code == 401


@pytest.mark.parametrize("value", [0, 6, 3.5])
async def test_rating_out_of_range(client, migrated, value):
    wings = await item_id(client, "Buffalo Wings")
    response = await client.put(
        f"/ratings/items/{wings}", json={"rating": value}, headers={"X-User-ID": "user-1"}
    )
    assert response.status_code == 422


async def test_rating_unknown_item(client):
    response = await client.put(
        "/ratings/items/999", json={"rating": 4}, headers={"X-User-ID": "user-1"}
    )
    assert response.status_code == 404


async def test_ratings_flow_into_location_stats(client, migrated):
    wings = await item_id(client, "Buffalo Wings")
    for user, value in (("u1", 5), ("u2", 3)):
        response = await client.put(
            f"/ratings/items/{wings}", json={"rating": value}, headers={"X-User-ID": user}
        )
        assert response.status_code == 200

    stats = (await client.get(f"/ratings/items/{wings}/stats")).json()
    assert stats == {"average_rating": 4.0, "rating_count": 2, "user_rating": None}

    body = (await client.get("/locations", params={"sort_by": "rating"}, headers={"X-User-ID": "u1"})).json()
    wing_stop = body["locations"][0]
    assert wing_stop["restaurant_name"] == "Wing Stop"
    # unrated Cauliflower Wings is left out of the mean
    assert wing_stop["average_rating"] == 4.0
    assert wing_stop["review_count"] == 2
    assert wing_stop["items"][0]["user_rating"] == 5

    mine = (await client.get(f"/ratings/items/{wings}/me", headers={"X-User-ID": "u2"})).json()
    assert mine == {"rating": 3}


async def test_delete_rating(client, migrated):
    wings = await item_id(client, "Buffalo Wings")
    headers = {"X-User-ID": "u1"}
    await client.put(f"/ratings/items/{wings}", json={"rating": 5}, headers=headers)

    assert (await client.delete(f"/ratings/items/{wings}", headers=headers)).json()["success"] is True
    assert (await client.delete(f"/ratings/items/{wings}", headers=headers)).json()["success"] is False
    assert (await client.get("/ratings/me", headers=headers)).json() == []


async def test_enrichment_endpoint(client, migrated):
    listing = (await client.get("/locations")).json()
    keys = [i["item_key"] for loc in listing["locations"] for i in loc["items"]]

    body = (await client.post("/locations/enrichment", json={"item_keys": keys + ["nope"]})).json()
    assert set(body) == set(keys)
    assert all(facts["rating_count"] == 0 for facts in body.values())


# ── Favorites ────────────────────────────────────────────────────────────────


async def test_toggle_favorite(client, migrated):
    wings = await item_id(client, "Buffalo Wings")
    headers = {"X-User-ID": "user-1"}

    first = await client.post(f"/favorites/items/{wings}/toggle", headers=headers)
    assert first.json() == {"item_id": wings, "favorited": True}
    items = (await client.get("/favorites/items", headers=headers)).json()
    assert [i["item_name"] for i in items] == ["Buffalo Wings"]

    second = await client.post(f"/favorites/items/{wings}/toggle", headers=headers)
    assert second.json()["favorited"] is False
    assert (await client.get("/favorites", headers=headers)).json() == []


async def test_toggle_favorite_anonymous(client, migrated):
    wings = await item_id(client, "Buffalo Wings")
    response = await client.post(f"/favorites/items/{wings}/toggle")
    assert response.status_code == 401
    assert (await client.get("/favorites")).json() == []
