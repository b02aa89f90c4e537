"""Send a signed sample push event to a running server and subscribe a test target.

Usage: python send_test_webhook.py [owner/name] [secret]
"""
import json
import os
import sys

import requests

from github_webhooks.security import compute_signature

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
API_KEY = os.getenv("API_KEY", "test-key")
REPO = sys.argv[1] if len(sys.argv) > 1 else "acme/widgets"
SECRET = sys.argv[2] if len(sys.argv) > 2 else "s3cr3t"

context = {"platform": "chat", "guild_id": "g1"}

# Create subscription
print("Subscribing:")
print(requests.post(
    f"{BASE_URL}/commands/subscribe",
    json={"context": context, "repo": REPO, "events": "push"},
    headers={"x-api-key": API_KEY},
).text)

# Send webhook
payload = {
    "ref": "refs/heads/main",
    "compare": f"https://github.com/{REPO}/compare/abc1234...def5678",
    "pusher": {"name": "octocat"},
    "repository": {"full_name": REPO, "html_url": f"https://github.com/{REPO}"},
    "commits": [
        {"id": "abc1234567890", "message": "Fix widget alignment", "url": f"https://github.com/{REPO}/commit/abc1234567890"},
        {"id": "def5678901234", "message": "Add widget tests", "url": f"https://github.com/{REPO}/commit/def5678901234"},
    ],
}
body = json.dumps(payload).encode("utf-8")
print("\nSending webhook:")
print(requests.post(
    f"{BASE_URL}{os.getenv('WEBHOOK_PATH', '/github/webhooks')}",
    data=body,
    headers={
        "Content-Type": "application/json",
        "X-GitHub-Event": "push",
        "X-Hub-Signature-256": compute_signature(SECRET, body),
    },
).json())

# Check subscriptions
print("\nListing subscriptions:")
print(requests.post(
    f"{BASE_URL}/commands/list",
    json={"context": context},
    headers={"x-api-key": API_KEY},
).text)
