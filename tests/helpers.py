"""Small feature builders shared by the test modules."""

from subway_access.data.models import PointFeature, PolygonFeature

# Metres per degree of latitude on the haversine sphere used by the build.
M_PER_DEG_LAT = 111195.08


def station(lon, lat, station_id, ada_south="0", ada_north="0", **extra):
    props = {
        "station_id": station_id,
        "complex_id": extra.pop("complex_id", station_id),
        "stop_name": extra.pop("stop_name", f"Station {station_id}"),
        "ada_southbound": ada_south,
        "ada_northbound": ada_north,
    }
    props.update(extra)
    return PointFeature((lon, lat), props)


def labelled(lon, lat, station_id, ada="no"):
    return PointFeature((lon, lat), {"station_id": station_id, "ada": ada})


def square(lon_min, lat_min, lon_max, lat_max):
    """Counter-clockwise square polygon geometry."""
    ring = [
        [lon_min, lat_min],
        [lon_max, lat_min],
        [lon_max, lat_max],
        [lon_min, lat_max],
        [lon_min, lat_min],
    ]
    return {"type": "Polygon", "coordinates": [ring]}


def neighborhood(nta, geometry, population=None):
    props = {"NTA2020": nta}
    if population is not None:
        props["Pop1"] = population
    return PolygonFeature(geometry, props)
