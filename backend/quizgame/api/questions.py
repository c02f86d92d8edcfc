from flask import Blueprint, jsonify, request
from quizgame.services.questions import (
    add_question,
    delete_question,
    get_question,
    get_random_questions,
    update_question,
)


questions = Blueprint('questions', __name__)
game = Blueprint('game', __name__)


@questions.route('/add', methods=['POST'])
def add():
    question = add_question(request.get_json(silent=True) or {})
    return jsonify({'success': True, 'message': 'Question added successfully!', 'question': question.to_dict()}), 201


@questions.route('', methods=['GET'])
@questions.route('/', methods=['GET'])
def sample():
    picked = get_random_questions(request.args.get('limit'))
    return jsonify({'success': True, 'questions': [q.to_dict() for q in picked]})


@questions.route('/<string:question_id>', methods=['GET'])
def get_one(question_id):
    return jsonify({'success': True, 'question': get_question(question_id).to_dict()})


@questions.route('/<string:question_id>', methods=['PUT'])
def update(question_id):
    question = update_question(question_id, request.get_json(silent=True) or {})
    return jsonify({'success': True, 'message': 'Question updated successfully!', 'question': question.to_dict()})


@questions.route('/<string:question_id>', methods=['DELETE'])
def delete(question_id):
    delete_question(question_id)
    return jsonify({'success': True, 'message': 'Question deleted successfully!'})


@game.route('/questions', methods=['GET'])
def game_questions():
    # The client checks answers itself, so correctAnswer stays in the payload
    picked = get_random_questions(request.args.get('limit'))
    return jsonify({'success': True, 'questions': [q.to_dict() for q in picked]})
