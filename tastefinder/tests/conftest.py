from __future__ import annotations

import pytest


@pytest.fixture
def business() -> dict:
    """One record as returned by the Yelp business search."""
    return {
        "id": "abc123",
        "alias": "lou-malnatis-chicago",
        "name": "Lou Malnati's Pizzeria",
        "image_url": "https://s3-media1.fl.yelpcdn.com/bphoto/x/o.jpg",
        "url": "https://www.yelp.com/biz/lou-malnatis-pizzeria-chicago",
        "review_count": 5120,
        "rating": 4.5,
        "price": "$$",
        "location": {
            "address1": "439 N Wells St",
            "address2": "",
            "address3": None,
            "city": "Chicago",
            "zip_code": "60654",
            "country": "US",
            "state": "IL",
            "display_address": ["439 N Wells St", "Chicago, IL 60654"],
        },
        "categories": [{"alias": "pizza", "title": "Pizza"}],
        "coordinates": {"latitude": 41.8904, "longitude": -87.6337},
        "phone": "+13128289800",
        "display_phone": "(312) 828-9800",
        "distance": 1203.4,
    }
