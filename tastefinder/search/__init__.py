"""
Business search layer.

Responsibilities:
- Translate a structured query into Yelp Fusion search parameters.
- Call the search endpoint and surface failures with upstream detail.
- Map the returned businesses into Restaurant records.
"""
