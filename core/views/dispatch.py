"""Dispatch desk: emergency calls and the ambulance fleet."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.dispatch import AmbulanceService, DispatchService


@api_view(['GET', 'POST'])
def dispatch_logs(request):
    service = DispatchService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def dispatch_detail(request, pk: int):
    service = DispatchService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        return Response(service.delete(pk, request.data))
    return Response(service.update(pk, request.data))


@api_view(['GET', 'POST'])
def ambulances(request):
    service = AmbulanceService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def ambulance_detail(request, pk: int):
    service = AmbulanceService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET', 'POST'])
def nearest_ambulances(request):
    service = AmbulanceService.for_request(request)
    return Response(service.nearest(request.data if request.method == 'POST' else request.query_params))


@api_view(['GET', 'POST'])
def ambulance_location(request, pk: int):
    service = AmbulanceService.for_request(request)
    if request.method == 'POST':
        return Response(service.update_location(pk, request.data))
    return Response(service.location(pk))


@api_view(['GET', 'POST'])
def ambulance_maintenance(request, pk: int):
    service = AmbulanceService.for_request(request)
    if request.method == 'POST':
        return Response(service.add_maintenance(pk, request.data), status=status.HTTP_201_CREATED)
    return Response(service.maintenance(pk, request.query_params))
