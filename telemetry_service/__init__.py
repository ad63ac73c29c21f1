"""
ISS Telemetry Relay Package

Relays live ISS position telemetry to WebSocket subscribers, enriched with
an SGP4 ground track and derived attributes.

Modules:
    elements_cache: TLE download and caching
    propagator: SGP4 ground-track propagation
    position_fetcher: live position source client
    attributes: illumination, visibility, inclination and period
    segmenter: antimeridian-aware track splitting
    registry: subscriber fan-out with catch-up
    scheduler: periodic refresh and broadcast cycles
    app: Flask service and push channel
"""

__version__ = "1.0.0"
