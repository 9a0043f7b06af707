"""容器存活探针: 请求健康检查接口，响应体 data.status 为 ok 时以 0 退出。"""
import http.client
import json
import os
import sys

DEFAULT_PORT = 8000
DEFAULT_PATH = "/api/v1/health"


def check(host: str, port: int, path: str, timeout: float = 5) -> bool:
    conn = http.client.HTTPConnection(host, port, timeout=timeout)
    try:
        conn.request("GET", path)
        response = conn.getresponse()
        if not 200 <= response.status < 300:
            print(f"Health check failed with status: {response.status}")
            return False

        body = json.loads(response.read() or b"{}")
        status = (body.get("data") or {}).get("status")
        if status != "ok":
            print(f"Health check returned unexpected status: {status!r}")
            return False
        return True
    except (OSError, ValueError, http.client.HTTPException) as e:
        print(f"Health check failed with error: {e}")
        return False
    finally:
        conn.close()


def main() -> int:
    port = int(os.getenv("PORT", DEFAULT_PORT))
    path = os.getenv("HEALTHCHECK_PATH", DEFAULT_PATH)
    if check("localhost", port, path):
        print(f"Health check passed: {path}")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
