from locust import HttpUser, task, between
import random

# Accounts created by scripts/seed.py
VIEWER_EMAIL = "viewer@lickscroll.dev"
VIEWER_PASSWORD = "viewer123"
CATEGORIES = ["music", "dance", "comedy", "travel"]


class FeedUser(HttpUser):
    wait_time = between(1, 2)

    def on_start(self):
        response = self.client.post(
            "/api/v1/login",
            json={"email": VIEWER_EMAIL, "password": VIEWER_PASSWORD},
        )
        token = response.json().get("token", "") if response.status_code == 200 else ""
        self.headers = {"accept": "application/json", "Authorization": f"Bearer {token}"}
        self.post_ids = []

    @task(5)
    def personal_feed(self):
        response = self.client.get(
            "/api/v1/feed",
            params={"limit": random.choice([10, 20, 50]), "offset": 0},
            headers=self.headers,
        )
        if response.status_code == 200:
            self.post_ids = [p["id"] for p in response.json().get("posts", [])]

    @task(3)
    def category_feed(self):
        category = random.choice(CATEGORIES)
        self.client.get(
            f"/api/v1/feed/category/{category}",
            params={"limit": 20},
            headers=self.headers,
            name="/api/v1/feed/category/[category]",
        )

    @task(2)
    def like_post(self):
        if not self.post_ids:
            return
        self.client.post(
            f"/api/v1/interactions/posts/{random.choice(self.post_ids)}/like",
            headers=self.headers,
            name="/api/v1/interactions/posts/[id]/like",
        )

    @task(1)
    def notifications(self):
        self.client.get("/api/v1/notifications", params={"limit": 20}, headers=self.headers)
