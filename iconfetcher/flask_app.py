from flask import Flask, jsonify, redirect, request
from loguru import logger

from iconfetcher.config import ResolverConfig
from iconfetcher.resolver import IconResolver


def iconfetcher_app(config: ResolverConfig = None, resolver: IconResolver = None):
    """
    Small HTTP front for the resolver, so a UI can just ask for an icon.

        GET /api/v1/icon?url=https://example.com   -> {"url": "...", "icon": "..."}
        GET /icon?url=https://example.com          -> 302 to the icon itself
    """
    app = Flask(__name__)
    app.config['RESOLVER'] = resolver or IconResolver(config=config or ResolverConfig.from_env())

    def _site_url():
        return (request.args.get('url') or '').strip()

    @app.route('/api/v1/icon', methods=['GET'])
    def api_icon():
        """
        @api {get} /api/v1/icon Resolve the icon for a web-site
        @apiExample {curl} Example usage:
            curl "http://localhost:5000/api/v1/icon?url=https://example.com"
            HTTP/1.0 200
            {
                "url": "https://example.com",
                "icon": "https://example.com/favicon.ico"
            }
        """
        site_url = _site_url()
        if not site_url:
            return jsonify({'message': "Missing 'url' parameter"}), 400

        icon = app.config['RESOLVER'].resolve(site_url)
        return jsonify({'url': site_url, 'icon': icon})

    @app.route('/icon', methods=['GET'])
    def icon_redirect():
        site_url = _site_url()
        if not site_url:
            return jsonify({'message': "Missing 'url' parameter"}), 400

        icon = app.config['RESOLVER'].resolve(site_url)
        logger.debug(f"Redirecting icon request for '{site_url}' to '{icon}'")
        return redirect(icon, code=302)

    return app
