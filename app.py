# cstore - Local Development Server
# Runs the pricing API against the SQLite database configured in cstore/config.py

from cstore import create_app
from cstore.extensions import db

app = create_app()

with app.app_context():
    db.create_all()


if __name__ == '__main__':
    app.run(debug=app.config.get('DEBUG', False), port=5000)
