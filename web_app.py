#!/usr/bin/env python3
"""
Flask web application for the FundSpace news feeds.
Features: RSS category feeds, NewsAPI headlines, CORS, security headers, rate limiting, compression.
"""

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_compress import Compress
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from cors_config import configure_cors
from fundspace.config import Settings
from fundspace.ingestion.feed_sources import UnknownCategoryError
from fundspace.news.news_service import NEWS_KINDS, NewsService
from fundspace.pipeline import NewsPipeline, build_pipeline

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logging.getLogger('urllib3').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

RSS_CACHE_CONTROL = 'public, max-age=300'


def add_security_headers(response):
    """Add security headers"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[NewsPipeline] = None,
    news_service: Optional[NewsService] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    pipeline = pipeline or build_pipeline(settings)
    news_service = news_service or NewsService(
        settings.news_api_key,
        timeout=settings.fetch_timeout,
        user_agent=settings.user_agent,
    )

    app = Flask(__name__)
    app.json.sort_keys = False
    app.config['RATELIMIT_ENABLED'] = settings.rate_limit_enabled
    app.extensions['news_pipeline'] = pipeline
    app.extensions['news_service'] = news_service

    configure_cors(app)
    Compress(app)
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        storage_uri="memory://",
    )
    limiter.init_app(app)
    app.after_request(add_security_headers)

    def rss_response(category: Optional[str]):
        category = (category or '').strip()
        if not category:
            return jsonify({'success': False, 'error': 'Category parameter is required'}), 400
        if not pipeline.has_category(category):
            logger.info(f"Rejected unknown category {category!r}")
            return jsonify({'success': False, 'error': 'Invalid category'}), 400

        try:
            articles = pipeline.get_articles(category)
        except UnknownCategoryError:
            return jsonify({'success': False, 'error': 'Invalid category'}), 400
        except Exception as e:
            logger.error(f"Error processing feeds for {category}: {e}", exc_info=True)
            return jsonify({'success': False, 'error': 'Failed to process feeds'}), 500

        response = jsonify(pipeline.payload(category, articles))
        response.headers['Cache-Control'] = RSS_CACHE_CONTROL
        return response

    @app.route('/api/rss', methods=['GET'])
    def get_rss():
        """Articles for ?category=..."""
        return rss_response(request.args.get('category'))

    @app.route('/api/rss/<category>', methods=['GET'])
    def get_rss_category(category):
        return rss_response(category)

    @app.route('/api/news/<kind>', methods=['GET'])
    def get_news(kind):
        """NewsAPI headlines (global, funder, nonprofit); fallback content on upstream failure."""
        if kind not in NEWS_KINDS:
            return jsonify({'success': False, 'error': 'Invalid news feed'}), 400
        try:
            articles = news_service.get(kind)
        except Exception as e:
            logger.error(f"Error fetching {kind} news: {e}", exc_info=True)
            return jsonify({'success': False, 'error': 'Failed to fetch news'}), 500
        return jsonify({
            'success': True,
            'articles': [a.to_dict() for a in articles],
            'total': len(articles),
        })

    @app.route('/api/health', methods=['GET'])
    @limiter.exempt
    def health():
        return jsonify({'status': 'ok'})

    @app.errorhandler(404)
    def not_found(error):
        """Custom 404 handler"""
        return jsonify({'success': False, 'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def rate_limit_handler(error):
        """Custom rate limit handler"""
        return jsonify({
            'success': False,
            'error': 'Rate limit exceeded',
            'message': 'Too many requests, please slow down',
        }), 429

    @app.errorhandler(500)
    def internal_error(error):
        """Custom 500 handler"""
        logger.error(f"Internal server error: {error}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    return app


app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    debug = os.environ.get('FLASK_ENV') == 'development'

    logger.info(f"Starting FundSpace news API on port {port}")
    logger.info(f"Debug mode: {debug}")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug,
        threaded=True
    )
