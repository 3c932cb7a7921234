#!/usr/bin/env python3
"""
JobRelay Quickstart — every HTTP operation in one script.

Posts a job → applies to it → alerts the employer directly →
exchanges chat messages → reads the conversation back.

Open a WebSocket to ws://localhost:5000/ws and send
{"event": "register", "data": "employer@acme.test"} first if you want
to watch the notifications arrive live.

Run with: python examples/quickstart.py
"""

import uuid

from _common import create_client


def main():
    run_id = uuid.uuid4().hex[:6]
    employer = "employer@acme.test"
    applicant = f"applicant-{run_id}@example.test"
    client = create_client()

    # ── Post a job (broadcast to every connection) ────────────────
    print("\n1. Posting a job...")
    resp = client.post("/create-job", json={
        "title": "Backend Engineer",
        "companyName": "Acme",
        "location": "Remote",
        "postedBy": employer,
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    job_id = resp.json()["insertedId"]
    print(f"   Job: {job_id}")

    # ── Apply (employer alerted if registered) ────────────────────
    print("\n2. Applying...")
    resp = client.post("/apply", json={
        "jobId": job_id,
        "applicantName": f"Applicant {run_id}",
        "employerIdentity": employer,
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Employer notified live: {resp.json()['delivered']}")

    # ── Unknown job is a 404 ──────────────────────────────────────
    resp = client.post("/apply", json={
        "jobId": str(uuid.uuid4()),
        "applicantName": "Nobody",
        "employerIdentity": employer,
    })
    print(f"   Applying to a missing job → {resp.status_code}")

    # ── Chat ──────────────────────────────────────────────────────
    print("\n3. Chatting...")
    for sender, receiver, text in [
        (applicant, employer, "Hi! Is the role still open?"),
        (employer, applicant, "It is. Free for a call tomorrow?"),
    ]:
        resp = client.post("/send-message", json={
            "senderIdentity": sender,
            "receiverIdentity": receiver,
            "text": text,
        })
        assert resp.status_code == 200, f"Failed: {resp.text}"
        data = resp.json()
        print(f"   {sender} → {receiver} (room {data['message']['roomId']}, delivered={data['delivered']})")

    # ── History ───────────────────────────────────────────────────
    print("\n4. Conversation, newest first:")
    resp = client.get("/messages", params={"userA": employer, "userB": applicant})
    for m in resp.json():
        print(f"   [{m['timestamp']}] {m['senderIdentity']}: {m['text']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
