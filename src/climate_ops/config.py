import os

# Gyeonggi Climate Platform WFS
GG_CLIMATE_API_KEY = os.getenv("GG_CLIMATE_API_KEY", "")
WFS_BASE_URL = os.getenv("WFS_BASE_URL", "https://climate.gg.go.kr/ols/api/geoserver/wfs")

# Korea Meteorological Administration (data.go.kr)
KMA_API_KEY = os.getenv("KMA_API_KEY", "")
KMA_BASE_URL = os.getenv("KMA_BASE_URL", "https://apis.data.go.kr/1360000")
# Suwon forecast grid cell and the Seoul/Gyeonggi warning station
KMA_GRID_NX = int(os.getenv("KMA_GRID_NX", "60"))
KMA_GRID_NY = int(os.getenv("KMA_GRID_NY", "121"))
KMA_STATION_ID = os.getenv("KMA_STATION_ID", "108")

# HTTP / fetch fan-out
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10.0"))
HTTP_RETRY_TOTAL = int(os.getenv("HTTP_RETRY_TOTAL", "2"))
FETCH_WORKERS = int(os.getenv("FETCH_WORKERS", "4"))
# wall-clock budget for one mode's layer fan-out; covers every retry of a single request
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", str(HTTP_TIMEOUT * (HTTP_RETRY_TOTAL + 1))))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "")
