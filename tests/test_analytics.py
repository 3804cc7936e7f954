from tests.utils import API, create_post, register


async def test_creator_stats_and_revenue(client):
    creator = await register(client, "creator")
    fan = await register(client, "fan")
    other = await register(client, "other")

    first = await create_post(client, creator["headers"], title="one")
    second = await create_post(client, creator["headers"], title="two")
    await create_post(client, other["headers"], title="not mine")

    await client.post(f"{API}/users/{fan['id']}/subscriptions/{creator['id']}", headers=fan["headers"])
    await client.post(f"{API}/posts/{first['id']}/like", headers=fan["headers"])
    await client.post(f"{API}/posts/{second['id']}/like", headers=fan["headers"])
    await client.post(f"{API}/posts/{second['id']}/like", headers=fan["headers"])  # unlike
    await client.get(f"{API}/posts/{first['id']}", headers=fan["headers"])

    await client.post(f"{API}/wallet/topup", json={"amount": 50}, headers=fan["headers"])
    await client.post(f"{API}/wallet/donate/{first['id']}", json={"amount": 20}, headers=fan["headers"])
    await client.post(f"{API}/wallet/donate/{first['id']}", json={"amount": 5}, headers=fan["headers"])
    # Top-ups are not donation income
    await client.post(f"{API}/wallet/topup", json={"amount": 7}, headers=creator["headers"])

    response = await client.get(f"{API}/analytics/creator/stats", headers=creator["headers"])
    assert response.status_code == 200
    assert response.json() == {
        "total_posts": 2,
        "total_views": 1,
        "total_donations": 2,
        "total_likes": 1,
        "total_revenue": 25,
        "total_subscribers": 1,
    }

    response = await client.get(f"{API}/analytics/creator/revenue", headers=creator["headers"])
    assert response.json() == {"revenue": 25}

    response = await client.get(f"{API}/analytics/creator/posts/{first['id']}", headers=creator["headers"])
    assert response.json() == {
        "post_id": first["id"],
        "views": 1,
        "likes": 1,
        "donations_count": 2,
        "donations_total": 25,
    }


async def test_post_analytics_scoped_to_creator(client):
    creator = await register(client, "creator")
    other = await register(client, "other")
    post = await create_post(client, creator["headers"])

    response = await client.get(f"{API}/analytics/creator/posts/{post['id']}", headers=other["headers"])
    assert response.status_code == 403

    response = await client.get(f"{API}/analytics/creator/posts/missing", headers=creator["headers"])
    assert response.status_code == 404
