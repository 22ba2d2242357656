# zonecart/domain/geofence.py
"""
Geofencing: punkt w wielokacie (ray casting / crossing number).

Wielokat to uporzadkowana lista wierzcholkow (lat, lng), ostatni laczy sie
z pierwszym. Mniej niz 3 wierzcholki = brak pokrycia.
"""
from typing import Iterable, Sequence, Tuple

from zonecart.domain.errors import ValidationError

Point = Tuple[float, float]

MIN_VERTICES = 3


def has_coverage(polygon: Sequence[Point]) -> bool:
    return polygon is not None and len(polygon) >= MIN_VERTICES


def contains(point: Point, polygon: Sequence[Point]) -> bool:
    """
    True jesli punkt lezy wewnatrz wielokata.

    Punkty na krawedzi / wierzcholku daja wynik zalezny od polozenia
    krawedzi, ale zawsze ten sam dla tych samych danych (brak losowosci,
    brak stanu). Wynik nie zalezy od wierzcholka startowego.
    """
    if not has_coverage(polygon):
        return False

    lat, lng = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        # krawedz przecina poziom lng, polprosta idzie w strone rosnacego lat
        if (yi > lng) != (yj > lng):
            cross_lat = (xj - xi) * (lng - yi) / (yj - yi) + xi
            if lat < cross_lat:
                inside = not inside
        j = i
    return inside


def polygon_area(polygon: Sequence[Point]) -> float:
    """Pole (shoelace) w stopniach^2, tylko do porownywania stref."""
    if not has_coverage(polygon):
        return 0.0

    total = 0.0
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        total += (xj * yi) - (xi * yj)
        j = i
    return abs(total) / 2.0


def normalize_polygon(raw: Iterable | None) -> list[Point]:
    """
    Przyjmuje [{"lat":..,"lng":..}] albo [[lat, lng]] i zwraca liste krotek.
    Rzuca ValidationError dla nieliczbowych lub spoza zakresu wartosci.
    """
    if raw is None:
        return []

    vertices: list[Point] = []
    for idx, vertex in enumerate(raw):
        try:
            if isinstance(vertex, dict):
                lat, lng = vertex["lat"], vertex["lng"]
            else:
                lat, lng = vertex
            lat, lng = float(lat), float(lng)
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Niepoprawny wierzcholek #{idx}: {vertex!r}")

        if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
            raise ValidationError(f"Wierzcholek #{idx} poza zakresem: ({lat}, {lng})")
        vertices.append((lat, lng))
    return vertices


def to_coordinates(polygon: Sequence[Point]) -> list[dict]:
    return [{"lat": lat, "lng": lng} for lat, lng in polygon]
