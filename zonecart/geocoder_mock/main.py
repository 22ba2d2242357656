# zonecart/geocoder_mock/main.py
from fastapi import FastAPI, Query

app = FastAPI(title="Geocoder (dev mock)")

# odpowiedzi w formacie Google Geocoding API
PLACES = {
    "1 rue sainte-catherine, montreal": {
        "street_number": "1",
        "route": "Rue Sainte-Catherine",
        "locality": "Montreal",
        "administrative_area_level_1": "QC",
        "country": "Canada",
        "postal_code": "H2X 1K4",
        "lat": 45.5088,
        "lng": -73.5617,
    },
    "100 boulevard laurier, quebec": {
        "street_number": "100",
        "route": "Boulevard Laurier",
        "locality": "Quebec",
        "administrative_area_level_1": "QC",
        "country": "Canada",
        "postal_code": "G1V 2M2",
        "lat": 46.7770,
        "lng": -71.2760,
    },
}


def _result(place: dict) -> dict:
    components = [
        {"long_name": place[kind], "types": [kind]}
        for kind in ("street_number", "route", "locality", "administrative_area_level_1", "country", "postal_code")
    ]
    return {
        "formatted_address": f"{place['street_number']} {place['route']}, {place['locality']}",
        "address_components": components,
        "geometry": {"location": {"lat": place["lat"], "lng": place["lng"]}},
    }


@app.get("/maps/api/geocode/json")
def geocode(
    key: str = Query(...),
    address: str | None = None,
    latlng: str | None = None,
):
    if address:
        line = address.strip().lower()
        for prefix, place in PLACES.items():
            if line.startswith(prefix):
                return {"status": "OK", "results": [_result(place)]}
        return {"status": "ZERO_RESULTS", "results": []}

    if latlng:
        lat, lng = (float(v) for v in latlng.split(","))
        place = min(PLACES.values(), key=lambda p: (p["lat"] - lat) ** 2 + (p["lng"] - lng) ** 2)
        return {"status": "OK", "results": [_result(place)]}

    return {"status": "INVALID_REQUEST", "results": []}
