"""
Viangola Registry API - Flask Application Entry Point

This module initializes the Flask application with OpenAPI 3.0 support,
configures middleware, and registers the vehicle registry endpoints.
"""

import os
from datetime import datetime, timezone
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

# Import middleware and services
from middleware.error_handler import ErrorHandlerMiddleware, register_custom_error_handlers
from middleware.validation import ValidationMiddleware
from middleware.auth import AuthMiddleware
from services.mongodb import MongoDBService
from services.auth import AuthService

# Initialize observability first
setup_observability()

# OpenAPI info
info = Info(
    title="Viangola Registry API",
    version="1.0.0",
    description="Angolan vehicle, driver, document and traffic fine registry"
)

tags = [
    Tag(name="Health", description="System health and status")
]

# Create Flask app with OpenAPI
app = OpenAPI(__name__, info=info)

# Add observability middleware
add_observability_middleware(app)

# Environment configuration
app.config['ENVIRONMENT'] = os.getenv('ENVIRONMENT', 'development')
app.config['DEBUG'] = app.config['ENVIRONMENT'] == 'development'
app.config['DOCS_ENABLED'] = os.getenv('DOCS_ENABLED', 'true').lower() == 'true'
app.config['OTEL_ENABLED'] = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'

# Token verification (tokens are issued by the identity backend)
app.config['JWT_SECRET'] = os.getenv('JWT_SECRET', 'dev-secret-key')
app.config['JWT_ALGORITHM'] = os.getenv('JWT_ALGORITHM', 'HS256')
app.config['JWT_PUBLIC_KEY'] = os.getenv('JWT_PUBLIC_KEY')
app.config['JWT_AUDIENCE'] = os.getenv('JWT_AUDIENCE')

# Database configuration
app.config['MONGODB_URI'] = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/viangola_dev')
app.config['MONGODB_DATABASE'] = os.getenv('MONGODB_DATABASE', 'viangola_dev')

# Initialize services
mongodb_service = MongoDBService(app.config['MONGODB_URI'], app.config['MONGODB_DATABASE'])
auth_service = AuthService(
    secret=app.config['JWT_SECRET'],
    algorithm=app.config['JWT_ALGORITHM'],
    public_key=app.config['JWT_PUBLIC_KEY'],
    audience=app.config['JWT_AUDIENCE']
)

# Initialize middleware
validation_middleware = ValidationMiddleware()
auth_middleware = AuthMiddleware(auth_service, mongodb_service)
error_handler = ErrorHandlerMiddleware(app)

# Register custom error handlers
register_custom_error_handlers(app)

# Make services available to routes
app.mongodb_service = mongodb_service
app.auth_service = auth_service
app.validation_middleware = validation_middleware
app.auth_middleware = auth_middleware

# Register routes
from routes.vehicles import vehicles_bp
from routes.drivers import drivers_bp
from routes.documents import documents_bp
from routes.fines import fines_bp
from routes.notifications import notifications_bp
from routes.users import users_bp
from routes.search import search_bp
from routes.reports import reports_bp
from routes.plates import plates_bp
from routes.permissions import permissions_bp

app.register_api(vehicles_bp)
app.register_api(drivers_bp)
app.register_api(documents_bp)
app.register_api(fines_bp)
app.register_api(notifications_bp)
app.register_api(users_bp)
app.register_api(search_bp)
app.register_api(reports_bp)
app.register_api(plates_bp)
app.register_api(permissions_bp)


@app.get('/api/healthz', tags=[tags[0]])
def health_check():
    """Service health with the MongoDB connection status"""
    mongodb = app.mongodb_service.health_check()
    healthy = mongodb.get('status') == 'healthy'

    health_data = {
        "status": "healthy" if healthy else "unhealthy",
        "service": "viangola-api",
        "version": info.version,
        "environment": app.config['ENVIRONMENT'],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dependencies": {"mongodb": mongodb}
    }
    return jsonify(health_data), 200 if healthy else 503


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
