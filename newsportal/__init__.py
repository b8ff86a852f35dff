import logging
import os
import sys

import click
from flask import Flask, jsonify
from .extensions import db, migrate
from .config import DevConfig, ProdConfig


def _configure_logging(app):
    """Set up structured logging for production."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    ))
    level = logging.INFO if not app.debug else logging.DEBUG
    app.logger.setLevel(level)
    app.logger.addHandler(handler)

    # Service modules log under the package name
    package_logger = logging.getLogger('newsportal')
    package_logger.setLevel(level)
    if not package_logger.handlers:
        package_logger.addHandler(handler)
    logging.getLogger('gunicorn.error').setLevel(level)


def _ensure_schema(app):
    """Create missing tables for deployments where Flask-Migrate isn't used.

    ``create_all`` only creates what does not exist yet, so this is safe to
    run on every start.
    """
    with app.app_context():
        try:
            db.create_all()
            app.logger.info('Schema check completed')
        except Exception as e:
            db.session.rollback()
            app.logger.warning('Schema check failed: %s', e)


def _init_services(app):
    from .api.news import PREFETCHER_KEY
    from .services.backend import get_backend
    from .services.genai import EXTENSION_KEY, Generator, get_generator
    from .services.prefetch import ImagePrefetcher

    app.extensions[EXTENSION_KEY] = Generator.from_config(app.config)

    if app.config.get('PREFETCH_ENABLED'):
        app.extensions[PREFETCHER_KEY] = ImagePrefetcher(
            generate=lambda title: get_generator().generate_article_image(title),
            persist=lambda url, image: get_backend().articles.update_article_image(url, image),
            idle_delay=app.config['PREFETCH_IDLE_DELAY'],
            interval=app.config['PREFETCH_INTERVAL'],
            context=app.app_context,
        )


def _register_commands(app):
    from .services.backend import get_backend

    @app.cli.command('seed-categories')
    def seed_categories():
        """Store the default categories as global rows."""
        added = get_backend().categories.seed_categories()
        click.echo('Seeded %d categories' % added)

    @app.cli.command('headlines')
    @click.option('--category', 'category_id', default=None, help='Category id (default: first).')
    @click.option('--search', 'term', default=None, help='Free-text search instead of a category.')
    @click.option('--refresh', is_flag=True, help='Bypass the cache.')
    def headlines(category_id, term, refresh):
        """Print the articles a client would see."""
        from .services.genai import get_generator
        from .services.news_app import NewsApp

        news = NewsApp(get_backend(), get_generator(), run_async=lambda fn: fn())
        news.load_categories()
        if term:
            news.search(term)
        elif category_id:
            news.select_category(category_id)
        else:
            news.select_category(news.active_category_id)
        if refresh:
            news.refresh()

        click.echo(news.active_category_label or '')
        for article in news.articles:
            marker = '*' if article.is_new else ' '
            click.echo('%s %s  %s (%s)' % (marker, article.date, article.title, article.source))
        if news.notification:
            click.echo(news.notification)


def create_app(config=None):
    app = Flask(__name__, static_folder=None)

    if config is None:
        config = ProdConfig if os.environ.get('FLASK_ENV') == 'production' else DevConfig
    app.config.from_object(config)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so they are registered with SQLAlchemy (needed for migrations)
    from . import models  # noqa: F401

    _ensure_schema(app)

    from flask_cors import CORS
    CORS(app)

    from .api import register_blueprints
    register_blueprints(app)

    _init_services(app)
    _register_commands(app)

    # Health check endpoint (used by Docker and CI)
    @app.route('/healthz')
    def health_check():
        try:
            db.session.execute(db.text('SELECT 1'))
            return jsonify(status='healthy'), 200
        except Exception:
            app.logger.exception('Health check failed')
            return jsonify(status='unhealthy'), 503

    return app
