"""Map adapter backed by folium (Leaflet + markercluster).

The rest of the package hands the adapter a GeoJSON FeatureCollection and
reacts to two events: a cluster was activated, or a single point was
activated. Nothing outside this module touches folium objects.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

import folium
from folium.plugins import MarkerCluster
from jinja2 import Template

from . import config
from .models import CATEGORY_COLORS, CATEGORY_EMOJI, Point, RankedListing

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = (
    f"Add {config.MAPBOX_TOKEN_ENV} to your environment or .env, then restart the server."
)


def to_feature_collection(ranked: Iterable[RankedListing]) -> Dict[str, Any]:
    features: List[Dict[str, Any]] = []
    for item in ranked:
        listing = item.listing
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [listing.lng, listing.lat]},
                "properties": {
                    "id": listing.id,
                    "slug": listing.slug,
                    "name": listing.name,
                    "category": listing.category,
                    "address": listing.address,
                    "note": listing.note,
                    "emoji": CATEGORY_EMOJI.get(listing.category, ""),
                    "rating": listing.rating,
                    "userRatingCount": listing.user_rating_count,
                    "verificationStatus": listing.verification_status,
                    "distanceKm": item.distance_km,
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


# --- Events ---


@dataclass(frozen=True)
class ClusterActivated:
    center: Point
    expansion_zoom: float


@dataclass(frozen=True)
class PointActivated:
    properties: Dict[str, Any]


@dataclass(frozen=True)
class ZoomTransition:
    center: Point
    zoom: float


@dataclass(frozen=True)
class PointDetail:
    popup_html: str
    href: str


class MapEventHandler(Protocol):
    # Zoom levels added to a cluster's expansion zoom. The rendered page
    # applies it client-side; on_cluster_activated must agree with it.
    cluster_zoom_offset: float

    def on_cluster_activated(self, event: ClusterActivated) -> ZoomTransition: ...

    def on_point_activated(self, event: PointActivated) -> PointDetail: ...


# --- Custom Leaflet glue ---


class _ClusterZoom(folium.MacroElement):
    """Zoom past the cluster's expansion zoom when it is clicked."""

    _template = Template(
        """
        {% macro script(this, kwargs) %}
        {{ this.cluster_name }}.on('clusterclick', function (e) {
            var map = {{ this.map_name }};
            var zoom = map.getBoundsZoom(e.layer.getBounds());
            map.setView(e.layer.getLatLng(), Math.min(zoom + {{ this.offset }}, map.getMaxZoom()));
        });
        {% endmacro %}
        """
    )

    def __init__(self, map_name: str, cluster_name: str, offset: float) -> None:
        super().__init__()
        self._name = "ClusterZoom"
        self.map_name = map_name
        self.cluster_name = cluster_name
        self.offset = offset


class _FlyTo(folium.MacroElement):
    _template = Template(
        """
        {% macro script(this, kwargs) %}
        {{ this.map_name }}.flyTo([{{ this.lat }}, {{ this.lng }}], {{ this.zoom }});
        {% endmacro %}
        """
    )

    def __init__(self, map_name: str, point: Point, zoom: float) -> None:
        super().__init__()
        self._name = "FlyTo"
        self.map_name = map_name
        self.lat = float(point.lat)
        self.lng = float(point.lng)
        self.zoom = zoom


def _tile_layer(token: str) -> folium.TileLayer:
    return folium.TileLayer(
        tiles=config.MAPBOX_TILE_URL.format(style=config.MAPBOX_STYLE, token=token),
        attr=config.MAPBOX_ATTRIBUTION,
        name="Mapbox",
        max_zoom=19,
    )


def _marker_icon(category: str, emoji: str) -> folium.DivIcon:
    color = CATEGORY_COLORS.get(category, "#111111")
    return folium.DivIcon(
        html=(
            f'<div style="width:22px;height:22px;border-radius:50%;background:{color};'
            'border:2px solid #fff;display:flex;align-items:center;justify-content:center;'
            f'font-size:12px;box-shadow:0 1px 3px rgba(0,0,0,.3);">{emoji}</div>'
        ),
        icon_size=(22, 22),
        icon_anchor=(11, 11),
        class_name="dogplaces-marker",
    )


class MapAdapter:
    """Clustered directory map. One instance per rendered page."""

    def __init__(self, token: str, handler: MapEventHandler) -> None:
        if not token:
            raise ValueError("A map token is required")
        self.token = token
        self.handler = handler
        self._map: Optional[folium.Map] = None
        self._cluster: Optional[MarkerCluster] = None
        self._cluster_zoom: Optional[_ClusterZoom] = None

    def __enter__(self) -> "MapAdapter":
        self.mount()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.destroy()

    @property
    def mounted(self) -> bool:
        return self._map is not None

    def mount(self) -> None:
        if self._map is not None:
            return
        fmap = folium.Map(
            location=[config.MAP_CENTER_LAT, config.MAP_CENTER_LNG],
            zoom_start=config.MAP_INITIAL_ZOOM,
            tiles=None,
            double_click_zoom=False,
        )
        _tile_layer(self.token).add_to(fmap)
        self._map = fmap

    def destroy(self) -> None:
        self._map = None
        self._cluster = None
        self._cluster_zoom = None

    def _require_map(self) -> folium.Map:
        if self._map is None:
            raise RuntimeError("Map adapter is not mounted")
        return self._map

    def set_data(self, feature_collection: Dict[str, Any]) -> None:
        """Replace the marker layer with the given features."""
        fmap = self._require_map()
        # folium has no public removal API; drop the previous layers by name.
        for element in (self._cluster, self._cluster_zoom):
            if element is not None:
                fmap._children.pop(element.get_name(), None)

        cluster = MarkerCluster(
            name="listings",
            control=False,
            max_cluster_radius=config.CLUSTER_RADIUS_PX,
            disable_clustering_at_zoom=config.CLUSTER_MAX_ZOOM + 1,
            zoom_to_bounds_on_click=False,
            show_coverage_on_hover=False,
        )
        for feature in feature_collection.get("features") or []:
            lng, lat = feature["geometry"]["coordinates"]
            props = dict(feature.get("properties") or {})
            detail = self.handler.on_point_activated(PointActivated(props))
            folium.Marker(
                location=[lat, lng],
                popup=folium.Popup(detail.popup_html, max_width=300),
                tooltip=props.get("name") or None,
                icon=_marker_icon(str(props.get("category") or ""), str(props.get("emoji") or "")),
            ).add_to(cluster)
        cluster.add_to(fmap)

        cluster_zoom = _ClusterZoom(fmap.get_name(), cluster.get_name(), self.handler.cluster_zoom_offset)
        cluster_zoom.add_to(fmap)

        self._cluster = cluster
        self._cluster_zoom = cluster_zoom
        logger.debug("Map data replaced: %s features", len(feature_collection.get("features") or []))

    def show_reference_point(self, point: Point) -> None:
        fmap = self._require_map()
        folium.CircleMarker(
            location=[point.lat, point.lng],
            radius=7,
            color="#ffffff",
            weight=3,
            fill=True,
            fill_color="#2563eb",
            fill_opacity=1.0,
            tooltip="You are here",
        ).add_to(fmap)
        _FlyTo(fmap.get_name(), point, config.MAP_USER_ZOOM).add_to(fmap)

    def render(self) -> str:
        return self._require_map().get_root().render()


class MiniMap:
    """Single-marker map for a listing's detail view."""

    def __init__(self, token: str, point: Point, name: str) -> None:
        if not token:
            raise ValueError("A map token is required")
        self.token = token
        self.point = point
        self.name = name

    def render(self) -> str:
        fmap = folium.Map(
            location=[self.point.lat, self.point.lng],
            zoom_start=config.MINI_MAP_ZOOM,
            tiles=None,
        )
        _tile_layer(self.token).add_to(fmap)
        folium.Marker(
            location=[self.point.lat, self.point.lng],
            popup=folium.Popup(html.escape(self.name), max_width=240),
        ).add_to(fmap)
        return fmap.get_root().render()
