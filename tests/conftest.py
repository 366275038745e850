import json

import cv2
import numpy as np
import pytest
from unittest.mock import MagicMock


def make_page(payload):
    """Wrap a __NEXT_DATA__ payload (dict or raw string) in a minimal page."""
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return (
        "<html><head><title>ada | daily.dev</title></head><body>"
        "<div id=\"__next\"></div>"
        f"<script id=\"__NEXT_DATA__\" type=\"application/json\">{body}</script>"
        "</body></html>"
    )


def make_response(status_code=200, text="", content=b""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.content = content
    return resp


@pytest.fixture
def user_payload():
    return {"props": {"pageProps": {"user": {
        "name": "ada", "reputation": 120, "id": "abc123",
        "username": "ada", "image": "https://media.daily.dev/ada.png",
    }}}}


@pytest.fixture
def card_image():
    """Synthetic 600x700 devcard with a gradient so every pixel is distinct."""
    h, w = 700, 600
    ys, xs = np.mgrid[0:h, 0:w]
    img = np.zeros((h, w, 3), dtype=np.uint8)
    img[..., 0] = xs % 256
    img[..., 1] = ys % 256
    img[..., 2] = (xs + ys) % 256
    return img


@pytest.fixture
def card_png(card_image):
    ok, buf = cv2.imencode(".png", card_image)
    assert ok
    return buf.tobytes()
