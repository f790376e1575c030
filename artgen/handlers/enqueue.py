"""AWS Lambda handler that plans a generation run and queues its batches to SQS."""

import base64
import json
import logging

import boto3

from ..api.serializers import serialize_batch_job
from ..clients.dynamo import DynamoStore
from ..clients.store import ProjectStore, StoreError
from ..config import ARTGEN_TABLE, AWS_REGION, BATCH_SIZE, QUEUE_URL
from ..models import GenerationRun
from ..services.scheduler import ScheduleError, plan_batches

logger = logging.getLogger(__name__)

sqs = boto3.client("sqs", region_name=AWS_REGION)


def enqueue_run(store: ProjectStore, sqs_client, queue_url: str, body: dict) -> dict:
    """
    Plan the batches of a run and send one message per batch.

    On a FIFO queue all batches of a run share a message group, so they are
    delivered one at a time and each batch sees the composites of the
    previous ones.

    Returns:
        Response body: number of batches and their message ids
    """
    run = GenerationRun(
        project_id=body["projectId"],
        collection_id=body["collectionId"],
        composite_group_id=body["compositeGroupId"],
    )
    batch_size = int(body.get("batchSize") or BATCH_SIZE)

    collection = store.get_collection(run.project_id, run.collection_id)
    trait_sets = store.trait_sets(run.project_id, run.collection_id)
    jobs = plan_batches(run, collection.supply, batch_size, trait_sets)

    is_fifo = queue_url.endswith(".fifo")
    message_ids = []
    for job in jobs:
        kwargs = {"QueueUrl": queue_url, "MessageBody": json.dumps(serialize_batch_job(job))}
        if is_fifo:
            kwargs["MessageGroupId"] = run.composite_group_id
            kwargs["MessageDeduplicationId"] = f"{run.composite_group_id}-{job.start_index}-{job.end_index}"
        response = sqs_client.send_message(**kwargs)
        message_ids.append(response["MessageId"])

    logger.info(f"Queued {len(jobs)} batches for {run.composite_group_id} (supply {collection.supply})")
    return {"status": "queued", "batches": len(jobs), "messageIds": message_ids}


def handler(event, context):
    """
    HTTP to SQS proxy.

    Input payload:
    {
        "projectId": "p1",
        "collectionId": "c1",
        "compositeGroupId": "g1",
        "batchSize": 50
    }
    """
    body = event.get("body") or "{}"

    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    body = json.loads(body)
    missing = [k for k in ("projectId", "collectionId", "compositeGroupId") if not body.get(k)]
    if missing:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": f"Missing fields: {', '.join(missing)}"}),
        }

    if not QUEUE_URL:
        logger.error("QUEUE_URL is not configured")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": "Queue not configured"}),
        }

    try:
        result = enqueue_run(DynamoStore(ARTGEN_TABLE, region_name=AWS_REGION), sqs, QUEUE_URL, body)
    except (ScheduleError, ValueError) as e:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": str(e)}),
        }
    except StoreError as e:
        logger.error(f"Failed to plan run: {e}")
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(e)}),
        }

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(result),
    }
