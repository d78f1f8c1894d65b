import json
import os
from dotenv import load_dotenv

load_dotenv()


def _load_currencies():
    raw = os.environ.get('CSTORE_CURRENCIES')
    if raw:
        return json.loads(raw)
    return [{'tag': 'USD', 'title': 'US Dollar', 'symbol': '$', 'ratio': 1}]


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    
    # Database - Using SQLite for easy local development
    basedir = os.path.dirname(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{os.path.join(basedir, "instance", "cstore.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    
    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    
    # Currencies - the first entry is the currency catalog prices are stored in
    CURRENCIES = _load_currencies()
    
    # Pricing
    DEFAULT_SHIPPING_PRICE = os.environ.get('DEFAULT_SHIPPING_PRICE', '0')
    STRICT_ATTRIBUTES = os.environ.get('STRICT_ATTRIBUTES', 'True').lower() == 'true'
    COUPON_EXHAUSTED_POLICY = os.environ.get('COUPON_EXHAUSTED_POLICY', 'fail')  # fail, drop
    

class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_ECHO = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    

class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    CURRENCIES = [
        {'tag': 'USD', 'title': 'US Dollar', 'symbol': '$', 'ratio': 1},
        {'tag': 'EUR', 'title': 'Euro', 'symbol': '€', 'ratio': 0.8},
    ]
    DEFAULT_SHIPPING_PRICE = '10'
    STRICT_ATTRIBUTES = True
    COUPON_EXHAUSTED_POLICY = 'fail'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
