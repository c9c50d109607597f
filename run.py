from __future__ import annotations

import os

from carapp import create_app
from carapp.extensions import db


def main() -> None:
    flask_app = create_app()

    with flask_app.app_context():
        db.create_all()

    flask_app.logger.info(
        "Mounted routes:\n%s",
        "\n".join(str(rule) for rule in sorted(flask_app.url_map.iter_rules(), key=lambda r: r.rule)),
    )

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    flask_app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), debug=debug_enabled)


if __name__ == "__main__":
    main()
