def register_blueprints(app):
    from newsportal.api.news import bp as news_bp
    from newsportal.api.articles import bp as articles_bp
    from newsportal.api.categories import bp as categories_bp
    from newsportal.api.favorites import bp as favorites_bp
    from newsportal.api.interactions import bp as interactions_bp
    from newsportal.api.inspiration import bp as inspiration_bp
    from newsportal.api.auth import bp as auth_bp
    from newsportal.api.user import bp as user_bp

    app.register_blueprint(news_bp)
    app.register_blueprint(articles_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(favorites_bp)
    app.register_blueprint(interactions_bp)
    app.register_blueprint(inspiration_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)
