"""
Status workflows.

Transfer, DispatchLog, EmergencyResponse and TelemedicineSession each get
one :class:`Workflow` table naming the allowed successor states, the
terminal states and the timestamp stamped on entering a state.  Every
route that changes one of those statuses goes through :func:`transition`,
so the rules live in exactly one place.

A transition:

* checks the workflow's write permission and that the target is a known
  status;
* locks the row (``select_for_update``) and asks the caller's
  ``authorize`` hook for facility/county scope;
* treats a request for the current status as a no-op;
* refuses edges the table does not list (``InvalidTransition``);
* writes the new status with ``UPDATE ... WHERE status = <old>`` and runs
  the side effect for the new state in the same transaction;
* leaves one audit row behind, successful or not.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from core import permissions
from core.exceptions import InvalidTransition, NotFound
from core.models import Ambulance, DispatchLog, EmergencyResponse, Patient, TelemedicineSession, Transfer
from core.realtime.events import broadcast_update
from core.services import audit
from core.services.base import EntityService, error_text
from core.tokens import Principal

logger = logging.getLogger(__name__)

Effect = Callable[[Any, Principal, Any], None]
Derive = Callable[[Any, dict], dict]


@dataclass(frozen=True)
class Workflow:
    name: str
    model: type
    permission: str
    transitions: Mapping[str, frozenset[str]]
    terminal: frozenset[str]
    stamps: Mapping[str, str] = field(default_factory=dict)
    # new status -> side effect run inside the transaction
    effects: Mapping[str, Effect] = field(default_factory=dict)
    # extra column values computed from the row and the pending update
    derive: Derive | None = None
    # status that keeps the assigned ambulance busy -> the ambulance's status
    ambulance_statuses: Mapping[str, str] = field(default_factory=dict)

    @property
    def statuses(self) -> frozenset[str]:
        states = set(self.transitions) | set(self.terminal)
        for targets in self.transitions.values():
            states |= targets
        return frozenset(states)

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal

    def can_transition(self, old: str, new: str) -> bool:
        if self.is_terminal(old):
            return False
        return new in self.transitions.get(old, frozenset())


def forward_path(path: Iterable[str], *, cancel: str | None = None) -> dict[str, frozenset[str]]:
    """Edges for a happy path where any later state may be jumped to."""
    path = list(path)
    edges = {}
    for i, state in enumerate(path[:-1]):
        targets = set(path[i + 1:])
        if cancel:
            targets.add(cancel)
        edges[state] = frozenset(targets)
    return edges


def _seconds_between(start: datetime | None, end: datetime | None) -> int | None:
    if not start or not end:
        return None
    return max(0, int((end - start).total_seconds()))


AMBULANCE_HOLDERS = (DispatchLog, EmergencyResponse, Transfer)


def holds_ambulance(obj) -> bool:
    """True while ``obj`` (a dispatch, response or transfer) keeps its ambulance busy."""
    return bool(obj.ambulance_id) and obj.status in type(obj).AMBULANCE_HOLDING_STATUSES


def ambulance_in_use(ambulance_id, *, exclude=None) -> bool:
    """True if a live dispatch, emergency response or transfer other than ``exclude`` holds the ambulance."""
    for model in AMBULANCE_HOLDERS:
        qs = model.objects.filter(ambulance_id=ambulance_id, status__in=model.AMBULANCE_HOLDING_STATUSES)
        if isinstance(exclude, model):
            qs = qs.exclude(pk=exclude.pk)
        if qs.exists():
            return True
    return False


def claim_ambulance(ambulance_id, status: str, *, holder=None) -> None:
    """Mark the ambulance busy on behalf of ``holder``.

    Raises ``ValidationError`` when the unit is off duty or another live
    record already holds it.  Runs inside the caller's transaction.
    """
    if not ambulance_id:
        return
    ambulance = Ambulance.objects.select_for_update().filter(pk=ambulance_id).first()
    if ambulance is None:
        raise NotFound('Ambulance not found')
    if ambulance.status in Ambulance.OFF_DUTY_STATUSES or ambulance_in_use(ambulance_id, exclude=holder):
        raise serializers.ValidationError(
            {'ambulanceId': [f'Ambulance {ambulance.registration_number} is {ambulance.status}']}
        )
    if ambulance.status != status:
        Ambulance.objects.filter(pk=ambulance_id).update(status=status, updated_at=timezone.now())


def release_ambulance(ambulance_id, *, holder=None, only_from: Iterable[str] | None = None) -> bool:
    """Put a busy ambulance back to AVAILABLE.  True if this call released it.

    Nothing happens while another live record still holds the unit, or
    when ``only_from`` is given and the unit is in none of those states.
    """
    if not ambulance_id:
        return False
    if ambulance_in_use(ambulance_id, exclude=holder):
        logger.info('ambulance %s still in use; not released', ambulance_id)
        return False
    qs = Ambulance.objects.filter(pk=ambulance_id)
    if only_from is not None:
        qs = qs.filter(status__in=tuple(only_from))
    else:
        qs = qs.exclude(status__in=('AVAILABLE',) + Ambulance.OFF_DUTY_STATUSES)
    released = qs.update(status='AVAILABLE', updated_at=timezone.now())
    if released:
        logger.info('ambulance %s released', ambulance_id)
    return bool(released)


def _claims(ambulance_statuses: Mapping[str, str]) -> dict[str, Effect]:
    """Effects keeping the assigned ambulance busy, one per holding status."""

    def claim(ambulance_status):
        def effect(obj, actor, user) -> None:
            claim_ambulance(obj.ambulance_id, ambulance_status, holder=obj)
        return effect

    return {state: claim(status) for state, status in ambulance_statuses.items()}


def _set_patient(patient_id, **values) -> None:
    Patient.objects.filter(pk=patient_id).update(updated_at=timezone.now(), **values)


# -- transfer ---------------------------------------------------------------

def _transfer_approved(obj: Transfer, actor, user) -> None:
    _set_patient(obj.patient_id, current_status='IN_TRANSFER')


TRANSFER_AMBULANCE = {'IN_TRANSIT': 'TRANSPORTING'}


def _transfer_completed(obj: Transfer, actor, user) -> None:
    _set_patient(obj.patient_id, current_hospital_id=obj.destination_hospital_id, current_status='ADMITTED')
    release_ambulance(obj.ambulance_id, holder=obj, only_from=('TRANSPORTING',))


def _transfer_closed(obj: Transfer, actor, user) -> None:
    Patient.objects.filter(
        pk=obj.patient_id, current_status__in=('AWAITING_TRANSFER', 'IN_TRANSFER')
    ).update(current_status='ADMITTED', updated_at=timezone.now())
    release_ambulance(obj.ambulance_id, holder=obj, only_from=('TRANSPORTING',))


def _transfer_derive(obj: Transfer, values: dict) -> dict:
    if values.get('status') == 'COMPLETED' and not (values.get('arrival_time') or obj.arrival_time):
        return {'arrival_time': values['completed_at']}
    return {}


TRANSFER = Workflow(
    name='TRANSFER',
    model=Transfer,
    permission='transfers.write',
    transitions={
        'REQUESTED': frozenset({'APPROVED', 'REJECTED', 'CANCELLED'}),
        'APPROVED': frozenset({'IN_TRANSIT', 'COMPLETED'}),
        'IN_TRANSIT': frozenset({'COMPLETED'}),
    },
    terminal=frozenset({'COMPLETED', 'REJECTED', 'CANCELLED'}),
    stamps={
        'APPROVED': 'approved_at',
        'REJECTED': 'rejected_at',
        'IN_TRANSIT': 'departure_time',
        'COMPLETED': 'completed_at',
        'CANCELLED': 'cancelled_at',
    },
    effects={
        'APPROVED': _transfer_approved,
        **_claims(TRANSFER_AMBULANCE),
        'COMPLETED': _transfer_completed,
        'REJECTED': _transfer_closed,
        'CANCELLED': _transfer_closed,
    },
    derive=_transfer_derive,
    ambulance_statuses=TRANSFER_AMBULANCE,
)


# -- dispatch ---------------------------------------------------------------

DISPATCH_PATH = (
    'RECEIVED', 'ASSESSING', 'DISPATCHED', 'EN_ROUTE', 'ON_SCENE',
    'TRANSPORTING', 'AT_HOSPITAL', 'COMPLETED',
)


def _dispatch_edges() -> dict[str, frozenset[str]]:
    edges = forward_path(DISPATCH_PATH, cancel='CANCELLED')
    for state in ('RECEIVED', 'ASSESSING'):
        edges[state] = edges[state] | {'NO_AMBULANCE_AVAILABLE'}
    edges['NO_AMBULANCE_AVAILABLE'] = frozenset({'DISPATCHED', 'CANCELLED'})
    return edges


DISPATCH_AMBULANCE = {state: state for state in DispatchLog.AMBULANCE_HOLDING_STATUSES}


def _dispatch_released(obj: DispatchLog, actor, user) -> None:
    release_ambulance(obj.ambulance_id, holder=obj)


def _dispatch_derive(obj: DispatchLog, values: dict) -> dict:
    on_scene = values.get('arrived_on_scene') or obj.arrived_on_scene
    left_scene = values.get('departed_scene') or obj.departed_scene
    at_hospital = values.get('arrived_hospital') or obj.arrived_hospital
    derived = {}
    if on_scene and obj.response_time is None:
        derived['response_time'] = _seconds_between(obj.call_received, on_scene)
    if at_hospital and left_scene and obj.transport_time is None:
        derived['transport_time'] = _seconds_between(left_scene, at_hospital)
    return derived


DISPATCH = Workflow(
    name='DISPATCH',
    model=DispatchLog,
    permission='dispatch.write',
    transitions=_dispatch_edges(),
    terminal=frozenset({'COMPLETED', 'CANCELLED'}),
    stamps={
        'ASSESSING': 'assessment_started',
        'DISPATCHED': 'dispatched',
        'EN_ROUTE': 'en_route',
        'ON_SCENE': 'arrived_on_scene',
        'TRANSPORTING': 'departed_scene',
        'AT_HOSPITAL': 'arrived_hospital',
        'COMPLETED': 'cleared',
        'CANCELLED': 'cancelled_at',
    },
    effects={
        **_claims(DISPATCH_AMBULANCE),
        'COMPLETED': _dispatch_released,
        'CANCELLED': _dispatch_released,
    },
    derive=_dispatch_derive,
    ambulance_statuses=DISPATCH_AMBULANCE,
)


# -- emergency response -----------------------------------------------------

RESPONSE_AMBULANCE = {
    'DISPATCHED': 'DISPATCHED',
    'EN_ROUTE': 'EN_ROUTE',
    'ON_SCENE': 'ON_SCENE',
    'TREATING': 'ON_SCENE',
    'TRANSPORTING': 'TRANSPORTING',
}


def _response_released(obj: EmergencyResponse, actor, user) -> None:
    release_ambulance(obj.ambulance_id, holder=obj)


RESPONSE = Workflow(
    name='EMERGENCY_RESPONSE',
    model=EmergencyResponse,
    permission='emergencies.write',
    transitions=forward_path(
        ('DISPATCHED', 'EN_ROUTE', 'ON_SCENE', 'TREATING', 'TRANSPORTING', 'COMPLETED'),
        cancel='CANCELLED',
    ),
    terminal=frozenset({'COMPLETED', 'CANCELLED'}),
    stamps={
        'ON_SCENE': 'arrived_at',
        'TRANSPORTING': 'departed_at',
        'COMPLETED': 'completed_at',
        'CANCELLED': 'cancelled_at',
    },
    effects={
        **_claims(RESPONSE_AMBULANCE),
        'COMPLETED': _response_released,
        'CANCELLED': _response_released,
    },
    ambulance_statuses=RESPONSE_AMBULANCE,
)


# -- telemedicine -----------------------------------------------------------

def _session_derive(obj: TelemedicineSession, values: dict) -> dict:
    if values.get('status') != 'COMPLETED':
        return {}
    start = values.get('start_time') or obj.start_time
    seconds = _seconds_between(start, values.get('end_time'))
    return {'duration': seconds // 60} if seconds is not None else {}


TELEMEDICINE = Workflow(
    name='TELEMEDICINE_SESSION',
    model=TelemedicineSession,
    permission='telemedicine.write',
    transitions={
        'SCHEDULED': frozenset({'IN_PROGRESS', 'CANCELLED', 'NO_SHOW'}),
        'IN_PROGRESS': frozenset({'COMPLETED', 'TECHNICAL_FAILURE', 'CANCELLED'}),
    },
    terminal=frozenset({'COMPLETED', 'CANCELLED', 'NO_SHOW', 'TECHNICAL_FAILURE'}),
    stamps={
        'IN_PROGRESS': 'start_time',
        'COMPLETED': 'end_time',
        'TECHNICAL_FAILURE': 'end_time',
        'CANCELLED': 'cancelled_at',
    },
    derive=_session_derive,
)


ACTIONS = {
    'APPROVED': audit.APPROVE,
    'REJECTED': audit.REJECT,
    'CANCELLED': audit.CANCEL,
}


def _has_field(model, name: str) -> bool:
    return any(f.name == name for f in model._meta.concrete_fields)


def transition(
    workflow: Workflow,
    pk,
    new_status: str,
    actor: Principal,
    *,
    user=None,
    fields: Mapping[str, Any] | None = None,
    authorize: Callable[[Any, str], None] | None = None,
    describe: Callable[[Any, str, str], str] | None = None,
    meta: Mapping[str, str] | None = None,
):
    """Move ``workflow.model`` row ``pk`` to ``new_status``.

    ``fields`` are extra column values written with the status (reasons,
    notes, caller-supplied timestamps).  ``authorize(obj, new_status)``
    raises ``Forbidden`` when the actor may not touch ``obj``.

    Returns the refreshed row.  Raises ``InvalidTransition``,
    ``Forbidden``, ``NotFound`` or ``ValidationError``.
    """
    new_status = str(new_status or '').strip().upper()
    action = ACTIONS.get(new_status, audit.UPDATE)
    old_status = None
    try:
        permissions.require_permission(actor, workflow.permission)
        if new_status not in workflow.statuses:
            raise serializers.ValidationError({'status': [f'"{new_status}" is not a valid status']})
        with transaction.atomic():
            obj = workflow.model.objects.select_for_update().filter(pk=pk).first()
            if obj is None:
                raise NotFound(f'{workflow.name.replace("_", " ").capitalize()} not found')
            if authorize is not None:
                authorize(obj, new_status)
            old_status = obj.status
            if old_status == new_status:
                return obj
            if not workflow.can_transition(old_status, new_status):
                raise InvalidTransition(f'Cannot change status from {old_status} to {new_status}')

            now = timezone.now()
            values = dict(fields or {})
            stamp = workflow.stamps.get(new_status)
            if stamp and not values.get(stamp):
                values[stamp] = now
            values['status'] = new_status
            if workflow.derive is not None:
                values.update(workflow.derive(obj, values))
            if _has_field(workflow.model, 'updated_at'):
                values['updated_at'] = now
            updated = workflow.model.objects.filter(pk=obj.pk, status=old_status).update(**values)
            if updated != 1:
                raise InvalidTransition(f'{workflow.name} {pk} changed concurrently; status is no longer {old_status}')
            obj.refresh_from_db()
            effect = workflow.effects.get(new_status)
            if effect is not None:
                effect(obj, actor, user)
    except Exception as exc:
        audit.record(
            actor=actor,
            action=action,
            entity_type=workflow.name,
            entity_id=pk,
            description=f'Failed to move {workflow.name} {pk} to {new_status or "?"}',
            changes={'status': {'from': old_status, 'to': new_status}} if old_status else None,
            success=False,
            error_message=error_text(exc),
            meta=meta,
        )
        raise

    changes = {'status': {'from': old_status, 'to': new_status}}
    for key, value in (fields or {}).items():
        changes[key] = value.pk if hasattr(value, 'pk') else value
    description = (
        describe(obj, old_status, new_status) if describe
        else f'{workflow.name} {pk} moved from {old_status} to {new_status}'
    )
    audit.record(
        actor=actor,
        action=action,
        entity_type=workflow.name,
        entity_id=obj.pk,
        description=description,
        changes=changes,
        meta=meta,
    )
    logger.info('%s %s: %s -> %s by %s', workflow.name, obj.pk, old_status, new_status, actor.id)
    broadcast_update(workflow.name, obj.pk, new_status, previous=old_status)
    return obj


class WorkflowService(EntityService):
    """Entity service whose ``status`` only moves through ``workflow``.

    ``update`` with a ``status`` in the body becomes a transition; the
    plain fields of the entity are edited through the regular update.
    ``delete`` cancels rather than removes.
    """
    workflow: Workflow
    status_serializer_class: type[serializers.Serializer]
    cancel_status = 'CANCELLED'

    def authorize_transition(self, obj, new_status: str) -> None:
        self.check_write_scope(obj)

    def check_assignment(self, obj, new_status: str, data: dict) -> None:
        """Refuse a newly assigned ambulance that is not free; let go of the one replaced."""
        if 'ambulance' not in data or new_status == obj.status:
            return
        ambulance = data['ambulance']
        new_id = ambulance.pk if ambulance is not None else None
        if new_id == obj.ambulance_id:
            return
        if ambulance is not None:
            ambulance = Ambulance.objects.select_for_update().get(pk=new_id)
            if ambulance.status != 'AVAILABLE' or ambulance_in_use(new_id, exclude=obj):
                raise serializers.ValidationError(
                    {'ambulanceId': [f'Ambulance {ambulance.registration_number} is {ambulance.status}']}
                )
        if holds_ambulance(obj):
            release_ambulance(obj.ambulance_id, holder=obj)

    def perform_update(self, obj, data):
        held = self.workflow.ambulance_statuses.get(obj.status)
        if not held or 'ambulance' not in data:
            return super().perform_update(obj, data)
        # obj already carries the new ambulance
        previous = type(obj).objects.filter(pk=obj.pk).values_list('ambulance_id', flat=True).first()
        if previous != obj.ambulance_id:
            release_ambulance(previous, holder=obj)
        obj = super().perform_update(obj, data)
        if previous != obj.ambulance_id:
            claim_ambulance(obj.ambulance_id, held, holder=obj)
        return obj

    def transition_fields(self, obj, new_status: str) -> dict:
        """Extra columns written with ``new_status``."""
        return {}

    def describe_transition(self, obj, old: str, new: str) -> str:
        return f'{self.describe(obj)} moved from {old} to {new}'

    def set_status(self, pk, payload: Mapping[str, Any], *, status: str | None = None) -> dict:
        body = dict(payload)
        if status is not None:
            body['status'] = status
        try:
            ser = self.status_serializer_class(data=body, context=self.context)
            ser.is_valid(raise_exception=True)
        except serializers.ValidationError as exc:
            target = str(body.get('status') or '').upper()
            self.audit(
                ACTIONS.get(target, audit.UPDATE), pk,
                f'Failed to change {self.entity_type} status',
                success=False, error_message=error_text(exc),
            )
            raise
        data = dict(ser.validated_data)
        new_status = data.pop('status')

        def authorize(obj, target):
            self.check_scope(obj)
            self.authorize_transition(obj, target)
            self.check_assignment(obj, target, data)
            data.update(self.transition_fields(obj, target))

        obj = transition(
            self.workflow, pk, new_status, self.actor,
            user=self.user,
            fields=data,
            authorize=authorize,
            describe=self.describe_transition,
            meta=self.meta,
        )
        return self.serialize(obj)

    def update(self, pk, payload: Mapping[str, Any]) -> dict:
        if 'status' in payload:
            return self.set_status(pk, payload)
        return super().update(pk, payload)

    def delete(self, pk, payload: Mapping[str, Any] | None = None) -> dict:
        return self.set_status(pk, payload or {}, status=self.cancel_status)
