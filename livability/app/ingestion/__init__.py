"""
ingestion — upstream data clients.

Modules:
    payload         — present/absent extraction from loose JSON bodies
    weather_service — Visual Crossing timeline → WeatherObservation
    geo_resolver    — country from resolved address or Nominatim reverse lookup
    stats_service   — REST Countries, World Bank GDP and Nominatim city population
"""
