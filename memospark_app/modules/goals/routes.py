"""Goal endpoints: student self-service and admin management."""

from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import login_required

from ...core.error_handlers import ValidationError, success_response
from ...services import get_backend_client
from ..auth.decorators import admin_required
from . import goals_bp
from .forms import CustomGoalForm, GoalTypeForm, SetGoalForm, TargetValueForm, UserGoalForm
from .services import AdminGoalService, StudentGoalService


def _validated(form):
    if not form.validate_on_submit():
        raise ValidationError('Please correct the highlighted fields', errors=form.errors)
    return form


def _student() -> StudentGoalService:
    return StudentGoalService(get_backend_client())


# -- student --------------------------------------------------------------

@goals_bp.route('/types', methods=['GET'])
@login_required
def goal_types():
    return jsonify(success_response(_student().goal_types()))


@goals_bp.route('', methods=['GET'])
@login_required
def my_goals():
    return jsonify(success_response(_student().my_goals()))


@goals_bp.route('/set', methods=['POST'])
@login_required
def set_goal():
    form = _validated(SetGoalForm())
    goal = _student().set_goal(form.goal_type_id.data, form.target_value.data)
    return jsonify(success_response(goal, 'Goal set successfully!'))


@goals_bp.route('/custom', methods=['POST'])
@login_required
def create_custom_goal():
    form = _validated(CustomGoalForm())
    goal = _student().create_custom_goal(form.to_payload())
    return jsonify(success_response(goal, 'Custom goal created successfully!')), 201


@goals_bp.route('/<goal_id>/toggle', methods=['PUT'])
@login_required
def toggle_goal(goal_id):
    return jsonify(success_response(_student().toggle_goal(goal_id), 'Goal status updated!'))


@goals_bp.route('/<goal_id>', methods=['DELETE'])
@login_required
def delete_goal(goal_id):
    _student().delete_goal(goal_id)
    return jsonify(success_response(message='Goal deleted successfully'))


# -- admin ----------------------------------------------------------------

@goals_bp.route('/admin/overview', methods=['GET'])
@admin_required
def admin_overview():
    """Goal dashboard; ``?refresh=1`` marks a user-triggered (throttled) refresh."""
    initial = request.args.get('refresh') not in ('1', 'true')
    return jsonify(success_response(AdminGoalService.for_request().refresh(initial=initial)))


@goals_bp.route('/admin/statistics', methods=['GET'])
@admin_required
def admin_statistics():
    return jsonify(success_response(AdminGoalService.for_request().statistics()))


@goals_bp.route('/admin/goal-types', methods=['GET'])
@admin_required
def admin_goal_types():
    return jsonify(success_response(AdminGoalService.for_request().goal_types()))


@goals_bp.route('/admin/goal-types', methods=['POST'])
@admin_required
def admin_create_goal_type():
    form = _validated(GoalTypeForm())
    goal_type = AdminGoalService.for_request().create_goal_type(form.to_payload())
    current_app.logger.info(f"Goal type created: {form.name.data}")
    return jsonify(success_response(goal_type, 'Goal type created successfully')), 201


@goals_bp.route('/admin/goal-types/<goal_type_id>', methods=['PUT'])
@admin_required
def admin_update_goal_type(goal_type_id):
    form = _validated(GoalTypeForm())
    goal_type = AdminGoalService.for_request().update_goal_type(goal_type_id, form.to_payload())
    return jsonify(success_response(goal_type, 'Goal type updated successfully'))


@goals_bp.route('/admin/goal-types/<goal_type_id>', methods=['DELETE'])
@admin_required
def admin_delete_goal_type(goal_type_id):
    AdminGoalService.for_request().delete_goal_type(goal_type_id)
    current_app.logger.info(f"Goal type deleted: {goal_type_id}")
    return jsonify(success_response(message='Goal type deleted successfully'))


@goals_bp.route('/admin/user-goals', methods=['GET'])
@admin_required
def admin_user_goals():
    goals = AdminGoalService.for_request().user_goals(request.args.get('user_id'))
    return jsonify(success_response(goals))


@goals_bp.route('/admin/user-goals', methods=['POST'])
@admin_required
def admin_create_user_goal():
    form = _validated(UserGoalForm())
    goal = AdminGoalService.for_request().create_user_goal(
        form.user_id.data, form.goal_type_id.data, form.target_value.data,
    )
    return jsonify(success_response(goal, 'User goal created successfully')), 201


@goals_bp.route('/admin/user-goals/<user_goal_id>', methods=['PUT'])
@admin_required
def admin_update_user_goal(user_goal_id):
    form = _validated(TargetValueForm())
    goal = AdminGoalService.for_request().update_user_goal(user_goal_id, form.target_value.data)
    return jsonify(success_response(goal, 'User goal updated successfully'))


@goals_bp.route('/admin/user-goals/<user_goal_id>', methods=['DELETE'])
@admin_required
def admin_delete_user_goal(user_goal_id):
    AdminGoalService.for_request().delete_user_goal(user_goal_id)
    return jsonify(success_response(message='User goal deleted successfully'))


@goals_bp.route('/admin/defaults', methods=['GET'])
@admin_required
def admin_default_goals():
    return jsonify(success_response(AdminGoalService.for_request().default_goals()))


@goals_bp.route('/admin/defaults', methods=['POST'])
@admin_required
def admin_update_default_goals():
    body = request.get_json(silent=True)
    defaults = body.get('defaults') if isinstance(body, dict) else body
    if not isinstance(defaults, list):
        raise ValidationError('A list of default goals is required', errors={'defaults': ['Expected a list']})
    result = AdminGoalService.for_request().update_default_goals(defaults)
    return jsonify(success_response(result, 'Default goals updated successfully'))
