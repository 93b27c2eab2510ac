import json
import logging
import os
import sys

from vtgeom import geojson, mvt_decoder
from vtgeom.errors import GeometryError
from vtgeom.geometry import GeomType, decode_geometry, encode_geometry

logger = logging.getLogger("vtgeom")

DEFAULT_LOG_LEVEL = os.environ.get("VTGEOM_LOG_LEVEL", "WARNING")
GEOM_TYPE_NAMES = {
    "point": GeomType.POINT,
    "linestring": GeomType.LINESTRING,
    "polygon": GeomType.POLYGON,
}

USAGE = """usage:
  main.py --type=point|linestring|polygon WORD [WORD ...]
  main.py --tile=PATH [--y-up] [--skip-invalid]
  main.py --encode='{"type": "LineString", "coordinates": [[2, 2], [2, 10]]}'
options:
  --log-level=LEVEL   logging level (default $VTGEOM_LOG_LEVEL or WARNING)"""


def _str_arg(argv, name, default=None):
    token = f"--{name}="
    for arg in argv:
        if arg.startswith(token):
            return arg.split("=", 1)[1]
    return default


def _positional(argv):
    return [arg for arg in argv if not arg.startswith("--")]


def run_decode_words(argv):
    type_name = _str_arg(argv, "type", "").lower()
    if type_name not in GEOM_TYPE_NAMES:
        raise SystemExit(f"Unknown geometry type {type_name!r}\n{USAGE}")
    geom_type = GEOM_TYPE_NAMES[type_name]
    words = [int(w, 0) for w in _positional(argv)]
    geometry = decode_geometry(geom_type, words)
    return geojson.to_geojson(geom_type, geometry)


def run_decode_tile(argv):
    path = _str_arg(argv, "tile")
    with open(path, "rb") as f:
        tile_bytes = f.read()
    options = {
        "y_coord_down": "--y-up" not in argv,
        "skip_invalid_geometry": "--skip-invalid" in argv,
    }
    return mvt_decoder.decode(tile_bytes, default_options=options)


def run_encode(argv):
    geom_type, geometry = geojson.from_geojson(json.loads(_str_arg(argv, "encode")))
    return encode_geometry(geom_type, geometry)


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    level = _str_arg(argv, "log-level", DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if _str_arg(argv, "tile") is not None:
            result = run_decode_tile(argv)
        elif _str_arg(argv, "encode") is not None:
            result = run_encode(argv)
        elif _str_arg(argv, "type") is not None:
            result = run_decode_words(argv)
        else:
            print(USAGE)
            return 2
    except GeometryError as e:
        logger.error("Geometry error: %s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid input: %s", e)
        return 1

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
