"""
Patient and triage endpoints.

Registration, lookup and updates of patients, plus the triage desk:
triage entries, the live queue ordered by urgency and period statistics.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.patients import PatientService, TriageService


@api_view(['GET', 'POST'])
def patients(request):
    service = PatientService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def patient_detail(request, pk: int):
    service = PatientService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET', 'POST'])
def triage(request):
    service = TriageService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET'])
def triage_queue(request):
    return Response(TriageService.for_request(request).queue(request.query_params))


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def triage_detail(request, pk: int):
    service = TriageService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET'])
def patient_search(request):
    return Response(PatientService.for_request(request).search(request.query_params))


@api_view(['GET'])
def triage_stats(request):
    return Response(TriageService.for_request(request).stats(request.query_params))
