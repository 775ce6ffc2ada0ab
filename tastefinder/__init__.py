"""
Taste Finder: restaurant search driven by natural-language cravings.

A user message is sent to a Groq-hosted chat model that extracts a structured
query (food, location, price, open-now). Queries with both food and location
are then run against the Yelp Fusion business search and rendered as a list.
"""
