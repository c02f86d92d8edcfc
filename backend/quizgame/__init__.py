from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS') or '*')

    # Import and register blueprints here
    from quizgame.routes import main, auth
    flask_app.register_blueprint(main)
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from quizgame.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api/teams')

    from quizgame.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    from quizgame.api.questions import questions, game
    flask_app.register_blueprint(questions, url_prefix='/api/questions')
    flask_app.register_blueprint(game, url_prefix='/api/game')

    # Every service failure leaves the process as a structured JSON error
    from quizgame.errors import ServiceError

    @flask_app.errorhandler(ServiceError)
    def handle_service_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    # Flask-Login user loader
    from quizgame.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'unauthorized', 'message': 'Login required.'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from quizgame.models import Question
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            for u in ['player_one', 'player_two', 'player_three']:
                db.session.add(User(username=u, pfp_url=flask_app.config['DEFAULT_PFP_URL']))

            # Seed a starter question bank
            for text, options, answer in SEED_QUESTIONS:
                db.session.add(Question(question=text, options=options, correct_answer=answer))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


SEED_QUESTIONS = [
    ('What is the capital of France?', ['Berlin', 'Madrid', 'Paris', 'Rome'], 2),
    ('How many continents are there?', ['5', '6', '7', '8'], 2),
    ('Which planet is known as the Red Planet?', ['Venus', 'Mars', 'Jupiter', 'Mercury'], 1),
    ('What is the largest ocean on Earth?', ['Atlantic', 'Indian', 'Arctic', 'Pacific'], 3),
    ('Who wrote "Romeo and Juliet"?', ['Dickens', 'Shakespeare', 'Austen', 'Tolstoy'], 1),
]
